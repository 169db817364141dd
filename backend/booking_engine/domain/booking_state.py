"""
booking_engine/domain/booking_state.py

预订状态机 - 约束预订状态转换

pending → confirmed → checked_in → checked_out → completed
pending / confirmed / checked_in → cancelled

只有 cancelled 不占用库存；终态（cancelled、completed）不可再转换，
因此任何合法转换都不会让一个预订重新占用库存。
"""
from typing import Dict, List, Optional
from dataclasses import dataclass, field
import logging

from booking_engine.errors import InvalidStatusTransition
from booking_engine.models.ontology import BookingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateTransition:
    """
    状态转换定义

    Attributes:
        from_state: 源状态
        to_state: 目标状态
        trigger: 触发动作
    """

    from_state: BookingStatus
    to_state: BookingStatus
    trigger: str


@dataclass
class StateMachineConfig:
    """
    状态机配置

    Attributes:
        name: 状态机名称
        states: 所有状态的列表
        transitions: 转换列表
        initial_states: 创建时允许的初始状态
        final_states: 终态
    """

    name: str
    states: List[BookingStatus]
    transitions: List[StateTransition]
    initial_states: List[BookingStatus] = field(default_factory=list)
    final_states: List[BookingStatus] = field(default_factory=list)


class StateMachine:
    """
    无状态的转换校验器

    预订的当前状态保存在数据库行上，状态机只负责回答 "能否从 A 到 B"。

    Example:
        >>> booking_state_machine.can_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
        True
        >>> booking_state_machine.can_transition(BookingStatus.CANCELLED, BookingStatus.CONFIRMED)
        False
    """

    def __init__(self, config: StateMachineConfig):
        self._config = config
        self._transition_map: Dict[BookingStatus, Dict[BookingStatus, StateTransition]] = {}

        # 构建转换映射: from_state -> {to_state: transition}
        for t in config.transitions:
            self._transition_map.setdefault(t.from_state, {})[t.to_state] = t

    @property
    def config(self) -> StateMachineConfig:
        return self._config

    def get_transition(self, current: BookingStatus, target: BookingStatus) -> Optional[StateTransition]:
        return self._transition_map.get(current, {}).get(target)

    def can_transition(self, current: BookingStatus, target: BookingStatus) -> bool:
        """检查是否可以从 current 转换到 target"""
        return self.get_transition(current, target) is not None

    def allowed_targets(self, current: BookingStatus) -> List[BookingStatus]:
        """当前状态下允许的目标状态"""
        return list(self._transition_map.get(current, {}).keys())

    def is_final(self, state: BookingStatus) -> bool:
        return state in self._config.final_states

    def is_initial(self, state: BookingStatus) -> bool:
        return state in self._config.initial_states

    def assert_transition(self, current: BookingStatus, target: BookingStatus) -> StateTransition:
        """
        校验转换，不合法时抛 InvalidStatusTransition

        Returns:
            命中的转换定义
        """
        transition = self.get_transition(current, target)
        if transition is None:
            logger.warning(
                f"Invalid transition: {current.value} -> {target.value} ({self._config.name})"
            )
            allowed = [s.value for s in self.allowed_targets(current)]
            raise InvalidStatusTransition(current.value, target.value, allowed)
        return transition


BOOKING_STATE_MACHINE_CONFIG = StateMachineConfig(
    name="Booking",
    states=list(BookingStatus),
    transitions=[
        StateTransition(BookingStatus.PENDING, BookingStatus.CONFIRMED, "confirm"),
        StateTransition(BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN, "check_in"),
        StateTransition(BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT, "check_out"),
        StateTransition(BookingStatus.CHECKED_OUT, BookingStatus.COMPLETED, "complete"),
        StateTransition(BookingStatus.PENDING, BookingStatus.CANCELLED, "cancel"),
        StateTransition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, "cancel"),
        StateTransition(BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, "cancel"),
    ],
    initial_states=[BookingStatus.PENDING, BookingStatus.CONFIRMED],
    final_states=[BookingStatus.CANCELLED, BookingStatus.COMPLETED],
)

# 全局预订状态机（无可变状态，可跨请求共享）
booking_state_machine = StateMachine(BOOKING_STATE_MACHINE_CONFIG)


__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "StateMachine",
    "BOOKING_STATE_MACHINE_CONFIG",
    "booking_state_machine",
]
