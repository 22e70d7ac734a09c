"""
Builder configuration for tfnet network inference
"""

from typing import Optional


class BuilderConfig:
    """Thresholds and proximity zones used while building a network"""

    def __init__(self):
        self.upstream_zone: int = 200
        self.downstream_zone: int = 50
        self.min_probability: float = 0.0
        self.min_regulation: int = 1
        self.max_regulated: Optional[int] = None  # None = no cap
        self.annotation_suffix: str = '.gbk'

    @classmethod
    def default(cls) -> 'BuilderConfig':
        """Create the default configuration"""
        return cls()

    @classmethod
    def strict(cls, min_probability: float = 0.9, min_regulation: int = 2,
               max_regulated: Optional[int] = None) -> 'BuilderConfig':
        """Create a configuration that keeps only well supported targets"""
        config = cls()
        config.min_probability = min_probability
        config.min_regulation = min_regulation
        config.max_regulated = max_regulated
        return config

    def validate(self) -> 'BuilderConfig':
        """Check value ranges, raising ValueError on the first bad setting"""
        if self.upstream_zone < 0 or self.downstream_zone < 0:
            raise ValueError("Proximity zones must not be negative")
        if not 0.0 <= self.min_probability <= 1.0:
            raise ValueError(f"min_probability must lie in [0, 1], got {self.min_probability}")
        if self.min_regulation < 1:
            raise ValueError(f"min_regulation must be at least 1, got {self.min_regulation}")
        if self.max_regulated is not None and self.max_regulated < 1:
            raise ValueError(f"max_regulated must be at least 1, got {self.max_regulated}")
        return self

    def __repr__(self):
        return (f"BuilderConfig(upstream_zone={self.upstream_zone}, "
                f"downstream_zone={self.downstream_zone}, "
                f"min_probability={self.min_probability}, "
                f"min_regulation={self.min_regulation}, "
                f"max_regulated={self.max_regulated})")
