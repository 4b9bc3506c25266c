"""
Log management for combat messages and debugging.

Components never write to the console. They publish ``LogMessage`` events on
the event bus and the LogManager collects them into a bounded buffer with
categories, levels and filtering, for display or for saving to disk.
"""
import os
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.events.event_manager import EventManager
    from ...core.events.events import CombatEvent


class LogCategory(Enum):
    """Categories for log messages."""
    SYSTEM = auto()     # Setup, loading, shutdown
    COMBAT = auto()     # Damage, defeats, combat start/end
    TIMELINE = auto()   # Scheduler and turn order
    AI = auto()         # Strategy selection and action execution
    PHASE = auto()      # Phase machine transitions
    INPUT = auto()      # Human turn signalling
    DEBUG = auto()      # Debug messages
    WARNING = auto()    # Warning messages
    ERROR = auto()      # Error messages
    CONFIG = auto()     # Configuration loading


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.COMBAT: "CBT",
    LogCategory.TIMELINE: "TML",
    LogCategory.AI: "AI",
    LogCategory.PHASE: "PHS",
    LogCategory.INPUT: "INP",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
    LogCategory.CONFIG: "CFG",
}


class LogLevel(Enum):
    """Log levels for filtering."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass
class LogEntry:
    """A single stored log message with metadata."""
    text: str
    category: LogCategory
    level: LogLevel = LogLevel.INFO
    combat_time: float = 0.0
    source: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self, include_time: bool = False, include_category: bool = True) -> str:
        """Format the entry for display."""
        parts = []
        if include_time:
            parts.append(f"[t={self.combat_time:.2f}]")
        if include_category:
            parts.append(f"[{CATEGORY_TAGS.get(self.category, '???')}]")
        parts.append(self.text)
        return " ".join(parts)


class LogManager:
    """Collects combat log messages with categorization and filtering."""

    def __init__(
        self,
        event_manager: "EventManager",
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO
    ):
        """Initialize the log manager.

        Args:
            event_manager: Event bus to collect log events from
            max_messages: Maximum number of messages kept in the buffer
            default_level: Minimum level returned by get_messages
        """
        self.messages: deque[LogEntry] = deque(maxlen=max_messages)
        self.log_level = default_level
        self.enabled_categories = set(LogCategory)
        self.event_manager = event_manager

        # Minimum level a category needs to be shown at when the event carries none
        self.category_levels = {
            LogCategory.DEBUG: LogLevel.DEBUG,
            LogCategory.INPUT: LogLevel.DEBUG,
            LogCategory.WARNING: LogLevel.WARNING,
            LogCategory.ERROR: LogLevel.ERROR,
        }

        self._setup_event_subscriptions()

    def _setup_event_subscriptions(self) -> None:
        from ...core.events.events import EventType

        self.event_manager.subscribe(
            EventType.LOG_MESSAGE,
            self._handle_log_message_event,
            subscriber_name="LogManager.log_message"
        )
        self.event_manager.subscribe(
            EventType.DEBUG_MESSAGE,
            self._handle_debug_message_event,
            subscriber_name="LogManager.debug_message"
        )
        self.event_manager.subscribe(
            EventType.LOG_SAVE_REQUESTED,
            self._handle_log_save_request,
            subscriber_name="LogManager.log_save_request"
        )

    def _handle_log_message_event(self, event: "CombatEvent") -> None:
        from ...core.events.events import LogMessage
        if not isinstance(event, LogMessage):
            return
        try:
            category = LogCategory[event.category.upper()]
        except (KeyError, AttributeError):
            category = LogCategory.SYSTEM
        self.messages.append(LogEntry(
            text=event.message,
            category=category,
            level=self._resolve_level(event.level, category),
            combat_time=event.combat_time,
            source=event.source,
        ))

    def _handle_debug_message_event(self, event: "CombatEvent") -> None:
        from ...core.events.events import DebugMessage
        if not isinstance(event, DebugMessage):
            return
        self.messages.append(LogEntry(
            text=f"[{event.source}] {event.message}",
            category=LogCategory.DEBUG,
            level=LogLevel.DEBUG,
            combat_time=event.combat_time,
            source=event.source,
        ))

    def _handle_log_save_request(self, event: "CombatEvent") -> None:
        from ...core.events.events import LogSaveRequested
        if isinstance(event, LogSaveRequested):
            self.save_log_to_file(event.directory)

    def _default_level_for(self, category: LogCategory) -> LogLevel:
        return self.category_levels.get(category, LogLevel.INFO)

    def _resolve_level(self, level: object, category: LogCategory) -> LogLevel:
        # Events may carry a LogLevel or its name
        if isinstance(level, LogLevel):
            return level
        if isinstance(level, str) and level.upper() in LogLevel.__members__:
            return LogLevel[level.upper()]
        return self._default_level_for(category)

    def log(self, text: str, category: LogCategory = LogCategory.SYSTEM,
            level: Optional[LogLevel] = None) -> None:
        """Add a message directly, bypassing the event bus."""
        self.messages.append(LogEntry(
            text=text,
            category=category,
            level=level or self._default_level_for(category),
            source="LogManager",
        ))

    def system(self, text: str) -> None:
        self.log(text, LogCategory.SYSTEM)

    def warning(self, text: str) -> None:
        self.log(text, LogCategory.WARNING, LogLevel.WARNING)

    def error(self, text: str) -> None:
        self.log(text, LogCategory.ERROR, LogLevel.ERROR)

    def get_messages(self, count: Optional[int] = None,
                     categories: Optional[set[LogCategory]] = None) -> list[LogEntry]:
        """Get recent messages, optionally filtered by category.

        Args:
            count: Maximum number of messages to return (None for all)
            categories: Categories to include (None for all enabled, level-filtered)

        Returns:
            Matching messages, oldest first
        """
        if categories:
            filtered = [msg for msg in self.messages
                        if msg.category in categories and msg.category in self.enabled_categories]
        else:
            filtered = [msg for msg in self.messages
                        if msg.category in self.enabled_categories
                        and msg.level.value >= self.log_level.value]

        if count is not None and count < len(filtered):
            return filtered[-count:]
        return filtered

    def get_formatted_messages(self, count: Optional[int] = None, include_time: bool = True) -> list[str]:
        return [msg.format(include_time=include_time) for msg in self.get_messages(count)]

    def clear(self) -> None:
        self.messages.clear()

    def enable_category(self, category: LogCategory) -> None:
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        self.enabled_categories.discard(category)

    def set_log_level(self, level: LogLevel) -> None:
        self.log_level = level

    def is_debug_enabled(self) -> bool:
        """Check if debug messages are currently shown."""
        return (LogCategory.DEBUG in self.enabled_categories and
                self.log_level == LogLevel.DEBUG)

    def toggle_debug(self) -> None:
        """Toggle debug message visibility."""
        if self.is_debug_enabled():
            self.disable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.INFO)
        else:
            self.enable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.DEBUG)

    def save_log_to_file(self, directory: str = "logs") -> Optional[str]:
        """Save every buffered message, filters ignored, to a timestamped file.

        Returns:
            Path of the written file, or None if writing failed
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = os.path.join(directory, f"combat_{timestamp}.log")

        try:
            os.makedirs(directory, exist_ok=True)
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write("Wuxia Combat - Combat Log\n")
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write("=" * 60 + "\n\n")

                if not self.messages:
                    f.write("No messages to save.\n")
                for msg in self.messages:
                    f.write(
                        f"[t={msg.combat_time:.3f}] [{msg.category.name}] "
                        f"[{msg.level.name}] {msg.text}\n"
                    )
        except OSError as e:
            self.error(f"Failed to save log file: {e}")
            return None

        self.system(f"Combat log saved to {filepath}")
        return filepath
