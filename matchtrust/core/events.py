# matchtrust/core/events.py
# Service 產生的對外事件 (目前只有通知)
# Service 只負責「記錄」事件，真正發送由 NotificationDispatcher 在交易提交後處理
import enum
from dataclasses import dataclass
from typing import List, Optional


class NotificationKind(str, enum.Enum):
    match_created = "match_created"
    completion_requested = "completion_requested"
    match_completed = "match_completed"
    review_received = "review_received"


@dataclass(frozen=True)
class DomainEvent:
    user_id: str
    kind: NotificationKind
    title: str
    message: Optional[str] = None
    action_url: Optional[str] = None


class EventCollector:
    """
    (Mixin) 讓 Service 可以累積待發送的事件
    Router 在 Service 呼叫完成後以 drain_events() 取出並交給 dispatcher
    """
    def __init__(self):
        self.pending_events: List[DomainEvent] = []

    def _emit(self, event: DomainEvent) -> None:
        self.pending_events.append(event)

    def drain_events(self) -> List[DomainEvent]:
        events, self.pending_events = self.pending_events, []
        return events
