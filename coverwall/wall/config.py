"""
Cover Wall Configuration

Handles configuration for the scrolling cover wall including column geometry,
year divider sizing, animation speed, and resource pool thresholds.
"""

import logging
from typing import Dict, Any, List, Tuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class WallConfig:
    """Configuration for the cover wall layout and animation."""

    # Layout
    column_width: int = 240
    max_image_height: int = 320
    year_tag_height: int = 60
    year_tag_margin: int = 20

    # Animation
    animation_speed: float = 20.0  # Pixels per second, leftward
    target_fps: int = 60
    max_frame_delta: float = 1.0  # Seconds; longer host stalls are clamped
    max_repeats: int = 10  # Wrap-around bound when packing one column

    # Resource pool thresholds
    geometry_cache_limit: int = 1000
    cover_cache_limit: int = 500
    column_pool_return_limit: int = 10
    column_pool_limit: int = 50
    year_tag_pool_limit: int = 20

    # Appearance
    background_color: Tuple[int, int, int] = (0, 0, 0)
    year_tag_color: Tuple[int, int, int] = (34, 34, 34)
    year_text_color: Tuple[int, int, int] = (255, 255, 255)
    font_path: str = ''

    # Year extraction
    timezone: str = 'UTC'

    @property
    def divider_height(self) -> int:
        """Vertical space consumed by one year divider (box + margin)."""
        return self.year_tag_height + self.year_tag_margin

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'WallConfig':
        """
        Create WallConfig from main configuration dictionary.

        Args:
            config: Main config dict (expects config['wall'])

        Returns:
            WallConfig instance
        """
        wall_config = config.get('wall', {})
        defaults = cls()

        return cls(
            column_width=int(wall_config.get('column_width', defaults.column_width)),
            max_image_height=int(wall_config.get('max_image_height', defaults.max_image_height)),
            year_tag_height=int(wall_config.get('year_tag_height', defaults.year_tag_height)),
            year_tag_margin=int(wall_config.get('year_tag_margin', defaults.year_tag_margin)),
            animation_speed=float(wall_config.get('animation_speed', defaults.animation_speed)),
            target_fps=int(wall_config.get('target_fps', defaults.target_fps)),
            max_frame_delta=float(wall_config.get('max_frame_delta', defaults.max_frame_delta)),
            max_repeats=int(wall_config.get('max_repeats', defaults.max_repeats)),
            geometry_cache_limit=int(wall_config.get('geometry_cache_limit', defaults.geometry_cache_limit)),
            cover_cache_limit=int(wall_config.get('cover_cache_limit', defaults.cover_cache_limit)),
            column_pool_return_limit=int(
                wall_config.get('column_pool_return_limit', defaults.column_pool_return_limit)
            ),
            column_pool_limit=int(wall_config.get('column_pool_limit', defaults.column_pool_limit)),
            year_tag_pool_limit=int(wall_config.get('year_tag_pool_limit', defaults.year_tag_pool_limit)),
            background_color=tuple(wall_config.get('background_color', defaults.background_color)),
            year_tag_color=tuple(wall_config.get('year_tag_color', defaults.year_tag_color)),
            year_text_color=tuple(wall_config.get('year_text_color', defaults.year_text_color)),
            font_path=wall_config.get('font_path', defaults.font_path) or '',
            timezone=config.get('timezone', defaults.timezone) or defaults.timezone,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            'column_width': self.column_width,
            'max_image_height': self.max_image_height,
            'year_tag_height': self.year_tag_height,
            'year_tag_margin': self.year_tag_margin,
            'animation_speed': self.animation_speed,
            'target_fps': self.target_fps,
            'max_frame_delta': self.max_frame_delta,
            'max_repeats': self.max_repeats,
            'geometry_cache_limit': self.geometry_cache_limit,
            'cover_cache_limit': self.cover_cache_limit,
            'column_pool_return_limit': self.column_pool_return_limit,
            'column_pool_limit': self.column_pool_limit,
            'year_tag_pool_limit': self.year_tag_pool_limit,
            'background_color': list(self.background_color),
            'year_tag_color': list(self.year_tag_color),
            'year_text_color': list(self.year_text_color),
            'font_path': self.font_path,
            'timezone': self.timezone,
        }

    def get_frame_interval(self) -> float:
        """Get the frame interval in seconds for target FPS."""
        return 1.0 / max(1, self.target_fps)

    def validate(self) -> List[str]:
        """
        Validate configuration values.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if self.column_width < 1:
            errors.append(f"column_width must be >= 1, got {self.column_width}")
        if self.max_image_height < 1:
            errors.append(f"max_image_height must be >= 1, got {self.max_image_height}")
        if self.year_tag_height < 0:
            errors.append(f"year_tag_height must be >= 0, got {self.year_tag_height}")
        if self.year_tag_margin < 0:
            errors.append(f"year_tag_margin must be >= 0, got {self.year_tag_margin}")

        if self.animation_speed <= 0:
            errors.append(f"animation_speed must be > 0, got {self.animation_speed}")
        # One synthesis per frame only keeps up while a frame moves less than a column
        if self.animation_speed * self.max_frame_delta >= self.column_width:
            errors.append(
                "animation_speed * max_frame_delta must be < column_width "
                f"({self.animation_speed} * {self.max_frame_delta} >= {self.column_width})"
            )

        if self.target_fps < 1:
            errors.append(f"target_fps must be >= 1, got {self.target_fps}")
        if self.target_fps > 240:
            errors.append(f"target_fps must be <= 240, got {self.target_fps}")

        if self.max_frame_delta <= 0:
            errors.append(f"max_frame_delta must be > 0, got {self.max_frame_delta}")

        if self.max_repeats < 1:
            errors.append(f"max_repeats must be >= 1, got {self.max_repeats}")

        for name in ('geometry_cache_limit', 'cover_cache_limit', 'column_pool_return_limit',
                     'column_pool_limit', 'year_tag_pool_limit'):
            if getattr(self, name) < 0:
                errors.append(f"{name} must be >= 0, got {getattr(self, name)}")

        return errors

    def update(self, new_config: Dict[str, Any]) -> None:
        """
        Update configuration from new values.

        Args:
            new_config: New configuration values to apply (expects new_config['wall'])
        """
        wall_config = new_config.get('wall', {})

        int_fields = ('column_width', 'max_image_height', 'year_tag_height', 'year_tag_margin',
                      'target_fps', 'max_repeats', 'geometry_cache_limit', 'cover_cache_limit',
                      'column_pool_return_limit', 'column_pool_limit', 'year_tag_pool_limit')
        float_fields = ('animation_speed', 'max_frame_delta')

        for name in int_fields:
            if name in wall_config:
                setattr(self, name, int(wall_config[name]))
        for name in float_fields:
            if name in wall_config:
                setattr(self, name, float(wall_config[name]))
        if 'timezone' in new_config:
            self.timezone = new_config['timezone']

        logger.info(
            "Wall config updated: column_width=%d, speed=%.1f, fps=%d, max_repeats=%d",
            self.column_width, self.animation_speed, self.target_fps, self.max_repeats
        )
