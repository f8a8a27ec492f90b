import os
from dataclasses import dataclass, field


@dataclass
class AnalyzerConfig:
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "50051")))
    max_workers: int = field(default_factory=lambda: int(os.getenv("MAX_WORKERS", "10")))
    max_message_size: int = field(
        default_factory=lambda: int(os.getenv("MAX_MESSAGE_SIZE", str(50 * 1024 * 1024)))
    )
    default_engine: str = field(
        default_factory=lambda: os.getenv("DEFAULT_ENGINE", "typst")
    )
    lookahead_limit: int = field(
        default_factory=lambda: int(os.getenv("LOOKAHEAD_LIMIT", "64"))
    )
    default_page_height: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_PAGE_HEIGHT", "792.0"))
    )
    coordinate_mode: str = field(
        default_factory=lambda: os.getenv("COORDINATE_MODE", "transform")
    )
