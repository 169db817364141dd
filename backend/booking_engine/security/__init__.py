from booking_engine.security.tenant import TenantContext, get_tenant_context

__all__ = ['TenantContext', 'get_tenant_context']
