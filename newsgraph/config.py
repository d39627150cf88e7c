"""
Centralized Configuration Module

Provides a single source of truth for all system configuration parameters.
Loads settings from environment variables with sensible defaults and validation.
"""

import os
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional
from urllib.parse import urlparse
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class Config:
    """
    Centralized configuration for the News Knowledge Graph.

    All configuration parameters are loaded from environment variables
    with sensible defaults. Validation is performed on initialization.
    """

    # Ollama Settings
    ollama_base_url: str = field(default="http://localhost:11434")
    ollama_timeout: int = field(default=30)

    # Answer Generation
    llm_model: str = field(default="llama3.1:latest")
    llm_temperature: float = field(default=0.7)
    llm_max_tokens: int = field(default=1500)

    # Labelling
    labeller_model: str = field(default="llama3.1:latest")
    labeller_max_tokens: int = field(default=2000)
    label_delay: float = field(default=1.0)

    # Graph Linking
    edge_threshold: int = field(default=3)
    similar_limit: int = field(default=5)

    # Retrieval Settings
    max_sources_default: int = field(default=5)
    candidate_limit: int = field(default=20)
    recent_limit: int = field(default=20)
    strategy_timeout: float = field(default=5.0)

    # Storage
    graph_file_path: str = field(default="data/graph/graph.json")
    tagged_articles_dir: str = field(default="data/tagged-articles")
    auto_save: bool = field(default=True)

    def __post_init__(self):
        """Load configuration from environment and validate."""
        self._load_from_environment()
        self._validate()

    def _load_from_environment(self):
        """Load configuration from environment variables."""
        # Ollama Settings
        self.ollama_base_url = self._get_env_str('OLLAMA_BASE_URL', self.ollama_base_url)
        self.ollama_timeout = self._get_env_int('OLLAMA_TIMEOUT', self.ollama_timeout)

        # Answer Generation
        self.llm_model = self._get_env_str('LLM_MODEL', self.llm_model)
        self.llm_temperature = self._get_env_float('LLM_TEMPERATURE', self.llm_temperature)
        self.llm_max_tokens = self._get_env_int('LLM_MAX_TOKENS', self.llm_max_tokens)

        # Labelling
        self.labeller_model = self._get_env_str('LABELLER_MODEL', self.labeller_model)
        self.labeller_max_tokens = self._get_env_int('LABELLER_MAX_TOKENS', self.labeller_max_tokens)
        self.label_delay = self._get_env_float('LABEL_DELAY', self.label_delay)

        # Graph Linking
        self.edge_threshold = self._get_env_int('EDGE_THRESHOLD', self.edge_threshold)
        self.similar_limit = self._get_env_int('SIMILAR_LIMIT', self.similar_limit)

        # Retrieval Settings
        self.max_sources_default = self._get_env_int('MAX_SOURCES_DEFAULT', self.max_sources_default)
        self.candidate_limit = self._get_env_int('CANDIDATE_LIMIT', self.candidate_limit)
        self.recent_limit = self._get_env_int('RECENT_LIMIT', self.recent_limit)
        self.strategy_timeout = self._get_env_float('STRATEGY_TIMEOUT', self.strategy_timeout)

        # Storage
        self.graph_file_path = self._get_env_path('GRAPH_FILE_PATH', self.graph_file_path)
        self.tagged_articles_dir = self._get_env_path('TAGGED_ARTICLES_DIR', self.tagged_articles_dir)
        self.auto_save = self._get_env_bool('AUTO_SAVE', self.auto_save)

    def _get_env_str(self, key: str, default: str) -> str:
        """Get string value from environment."""
        value = os.getenv(key, default)
        if isinstance(value, str):
            value = value.strip()
        return value

    def _get_env_int(self, key: str, default: int) -> int:
        """Get integer value from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            raise ConfigValidationError(
                f"Invalid integer value for {key}: '{value}'"
            )

    def _get_env_float(self, key: str, default: float) -> float:
        """Get float value from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            raise ConfigValidationError(
                f"Invalid float value for {key}: '{value}'"
            )

    def _get_env_bool(self, key: str, default: bool) -> bool:
        """Get boolean value from environment."""
        value = os.getenv(key)
        if value is None:
            return default

        value = value.lower().strip()
        if value in ('true', '1', 'yes', 'on'):
            return True
        elif value in ('false', '0', 'no', 'off'):
            return False
        else:
            return default

    def _get_env_path(self, key: str, default: str) -> str:
        """Get path value from environment with expansion."""
        value = os.getenv(key, default)
        if isinstance(value, str):
            value = value.strip()
            # Expand ~ to home directory
            value = os.path.expanduser(value)
        return value

    def _validate(self):
        """Validate configuration parameters."""
        # Validate non-empty strings
        if not self.llm_model:
            raise ConfigValidationError("llm_model cannot be empty")
        if not self.labeller_model:
            raise ConfigValidationError("labeller_model cannot be empty")
        if not self.graph_file_path:
            raise ConfigValidationError("graph_file_path cannot be empty")

        # Validate positive integers
        positive_int_fields = [
            ('llm_max_tokens', self.llm_max_tokens),
            ('labeller_max_tokens', self.labeller_max_tokens),
            ('similar_limit', self.similar_limit),
            ('max_sources_default', self.max_sources_default),
            ('candidate_limit', self.candidate_limit),
            ('recent_limit', self.recent_limit),
        ]

        for field_name, value in positive_int_fields:
            if value <= 0:
                raise ConfigValidationError(
                    f"{field_name} must be positive, got {value}"
                )

        if self.edge_threshold < 0:
            raise ConfigValidationError(
                f"edge_threshold must be non-negative, got {self.edge_threshold}"
            )

        # Validate timeouts
        if self.ollama_timeout < 1:
            raise ConfigValidationError(
                f"ollama_timeout must be at least 1, got {self.ollama_timeout}"
            )
        if self.strategy_timeout <= 0:
            raise ConfigValidationError(
                f"strategy_timeout must be positive, got {self.strategy_timeout}"
            )

        if not 0.0 <= self.llm_temperature <= 1.0:
            raise ConfigValidationError(
                f"llm_temperature must be between 0.0 and 1.0, got {self.llm_temperature}"
            )
        if self.label_delay < 0:
            raise ConfigValidationError(
                f"label_delay must be non-negative, got {self.label_delay}"
            )

        # Validate URL format
        parsed = urlparse(self.ollama_base_url)
        if not all([parsed.scheme, parsed.netloc]):
            raise ConfigValidationError(
                f"Invalid URL for ollama_base_url: {self.ollama_base_url}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def __repr__(self) -> str:
        """String representation of configuration."""
        items = []
        for key, value in self.to_dict().items():
            items.append(f"{key}={value!r}")
        return f"Config({', '.join(items)})"

    def update(self, **kwargs):
        """
        Update configuration values with validation.

        Args:
            **kwargs: Configuration parameters to update

        Raises:
            ConfigValidationError: If validation fails
        """
        # Store original values for rollback
        original_values = {}

        try:
            # Update values
            for key, value in kwargs.items():
                if not hasattr(self, key):
                    raise ConfigValidationError(f"Unknown configuration parameter: {key}")
                original_values[key] = getattr(self, key)
                setattr(self, key, value)

            # Validate new configuration
            self._validate()

        except Exception:
            # Rollback on validation failure
            for key, value in original_values.items():
                setattr(self, key, value)
            raise

    def get_retrieval_config(self) -> Dict[str, Any]:
        """Get retrieval-related configuration."""
        return {
            'max_sources_default': self.max_sources_default,
            'candidate_limit': self.candidate_limit,
            'recent_limit': self.recent_limit,
            'strategy_timeout': self.strategy_timeout,
        }

    def get_storage_config(self) -> Dict[str, Any]:
        """Get storage-related configuration."""
        return {
            'graph_file_path': self.graph_file_path,
            'tagged_articles_dir': self.tagged_articles_dir,
            'auto_save': self.auto_save,
        }


# Singleton instance
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        Config: Global configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reset_config():
    """Reset the global configuration instance."""
    global _config_instance
    _config_instance = None
