"""Whisker configuration.

WhiskerConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class WhiskerConfig:
    """Configuration for a Whisker application.

    Attributes:
        root: Path to the application root (contains reflexes/, templates/).
              Always resolved to an absolute path on construction.
        host: Bind address for ``serve``.
        port: Bind port for ``serve``.
        reflexes_dir: Directory containing reflex modules.
        templates_dir: Directory containing Kida templates for page renders.
        channel: Channel name prefixed to every topic (``<channel>:<topic>``).
            Empty string means topics are used as given.
        default_morph_target: Selector used when a message names no targets.
        profile: Print a per-message timing summary to stderr.
        max_events: Capacity of the observability event log.
        session_secret: Secret key for session signing, when sessions are used.

    """

    root: Path = field(default_factory=Path.cwd)
    host: str = "127.0.0.1"
    port: int = 3000
    reflexes_dir: str = "reflexes"
    templates_dir: str = "templates"
    channel: str = "whisker"
    default_morph_target: str = "body"
    profile: bool = False
    max_events: int = 10_000
    session_secret: str | None = None

    def __post_init__(self) -> None:
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

    @property
    def reflexes_path(self) -> Path:
        """Absolute path to the reflexes directory."""
        return self.root / self.reflexes_dir

    @property
    def templates_path(self) -> Path:
        """Absolute path to the templates directory."""
        return self.root / self.templates_dir

    def topic_for(self, name: str) -> str:
        """Qualify a client-supplied topic name with the channel prefix."""
        if not self.channel:
            return name
        return f"{self.channel}:{name}" if name else self.channel
