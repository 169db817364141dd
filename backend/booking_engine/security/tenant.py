"""
租户上下文

租户身份由上游（认证/租户解析中间件）写入 X-Tenant-ID 请求头；
这里只把它解析成显式的 TenantContext，作为参数传入每个服务。
服务层不读取任何进程级的租户状态，并发请求之间不会串租户。
"""
import logging
from dataclasses import dataclass
from typing import Optional
from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantContext:
    """请求级租户上下文"""

    tenant_id: str


def get_tenant_context(
    x_tenant_id: Optional[str] = Header(default=None, alias="X-Tenant-ID")
) -> TenantContext:
    """依赖注入：从请求头解析租户上下文"""
    tenant_id = (x_tenant_id or "").strip()
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tenant ID required"
        )
    return TenantContext(tenant_id=tenant_id)
