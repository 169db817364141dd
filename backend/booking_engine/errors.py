"""
领域错误定义

服务层直接抛出这些异常，由 exception_handlers.py 注册的处理器统一转换为
{"error": {"code", "message", "details"}} 响应。
所有错误继承 ValueError，沿用服务层 "非法输入抛 ValueError" 的约定。
"""
from typing import Any, Dict, List, Optional


class BookingEngineError(ValueError):
    """领域错误基类"""

    status_code: int = 400
    code: str = "BOOKING_ENGINE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class NotFound(BookingEngineError):
    """房间/预订/季节价不存在（或不属于当前租户）"""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} 不存在", {"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class InvalidDateRange(BookingEngineError):
    """夜数 <= 0 或日期格式非法"""

    code = "INVALID_DATE_RANGE"


class GuestCountInvalid(BookingEngineError):
    """人数为负或儿童年龄非法"""

    code = "GUEST_COUNT_INVALID"


class InvalidStatusTransition(BookingEngineError):
    """预订状态机不允许的转换"""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, target: str, allowed_targets: Optional[List[str]] = None):
        super().__init__(
            f"预订状态不能从 {current} 变更为 {target}",
            {"current_status": current, "target_status": target,
             "allowed_targets": allowed_targets or []},
        )


class BookingNotModifiable(BookingEngineError):
    """已取消/已退房/已完成的预订不能再改期"""

    code = "BOOKING_NOT_MODIFIABLE"

    def __init__(self, booking_id: int, status: str):
        super().__init__(
            f"状态为 {status} 的预订不可修改",
            {"booking_id": booking_id, "status": status},
        )


class StayRuleViolation(BookingEngineError):
    """入住晚数不满足最短/最长入住要求，且未设置覆盖标记"""

    status_code = 422
    code = "STAY_RULE_VIOLATION"

    def __init__(self, nights: int, min_stay_nights: int, max_stay_nights: Optional[int]):
        if nights < min_stay_nights:
            message = f"至少需入住 {min_stay_nights} 晚，当前 {nights} 晚"
        else:
            message = f"最多可入住 {max_stay_nights} 晚，当前 {nights} 晚"
        super().__init__(message, {
            "nights": nights,
            "min_stay_nights": min_stay_nights,
            "max_stay_nights": max_stay_nights,
        })


class AvailabilityConflict(BookingEngineError):
    """提交时复核库存失败，调用方需重新报价后重试"""

    status_code = 409
    code = "AVAILABILITY_CONFLICT"

    def __init__(self, room_id: int, available_units: int,
                 conflicts: Optional[List[Dict[str, Any]]] = None):
        conflicts = conflicts or []
        super().__init__(
            f"该房间在所选日期已无可用库存（{len(conflicts)} 个重叠预订）",
            {"room_id": room_id, "available_units": available_units, "conflicts": conflicts},
        )
        self.available_units = available_units
        self.conflicts = conflicts


__all__ = [
    "BookingEngineError",
    "NotFound",
    "InvalidDateRange",
    "GuestCountInvalid",
    "InvalidStatusTransition",
    "BookingNotModifiable",
    "StayRuleViolation",
    "AvailabilityConflict",
]
