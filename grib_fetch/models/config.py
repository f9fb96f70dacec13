"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import posixpath
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, Field, field_validator

from .index import SelectionRequest

IDX_SUFFIX = ".idx"
DEFAULT_TIMEOUT_S = 60.0


class FetchConfig(BaseModel):
    """A validated configuration model for the application."""

    # Source & selection
    idx_url: str
    parameters: dict[str, list[str]]

    # Transfer Settings
    timeout: float = DEFAULT_TIMEOUT_S
    output_dir: str = "."
    output_filename: str = ""
    keep_index: bool = False
    dry_run: bool = False

    # Internal fields not loaded from the JSON file
    config_path: str = Field(".", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("idx_url")
    @classmethod
    def validate_idx_url(cls, v: str) -> str:
        """Ensures the index URL is an HTTP(S) URL pointing at a .idx file."""
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"idx_url must be an http(s) URL, got: {v!r}")
        if not parts.path.endswith(IDX_SUFFIX):
            raise ValueError(f"idx_url must point at a '{IDX_SUFFIX}' file.")
        return v

    @field_validator("parameters")
    @classmethod
    def validate_parameters(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        """Requires at least one parameter and rejects blank names."""
        if not v:
            raise ValueError("At least one parameter must be requested.")
        cleaned = {}
        for name, levels in v.items():
            name = name.strip()
            if not name:
                raise ValueError("Parameter names cannot be empty.")
            stripped = [lvl.strip() for lvl in levels]
            if not all(stripped):
                raise ValueError(
                    f"Level names for '{name}' cannot be empty; "
                    "use an empty list to select every level."
                )
            cleaned[name] = stripped
        return cleaned

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Keeps the per-request timeout within a sane window."""
        if v <= 0 or v > 3600:
            raise ValueError("Timeout must be between 0 and 3600 seconds.")
        return v

    @field_validator("output_filename")
    @classmethod
    def validate_output_filename(cls, v: str) -> str:
        if v and (Path(v).name != v or v in (".", "..")):
            raise ValueError("Output filename must be a bare file name.")
        return v

    @property
    def grib_url(self) -> str:
        """The data file URL: the index URL with its '.idx' suffix removed."""
        parts = urlsplit(self.idx_url)
        return urlunsplit(parts._replace(path=parts.path[: -len(IDX_SUFFIX)]))

    @property
    def idx_filename(self) -> str:
        return posixpath.basename(urlsplit(self.idx_url).path)

    @property
    def grib_filename(self) -> str:
        return self.idx_filename[: -len(IDX_SUFFIX)]

    @property
    def destination_path(self) -> Path:
        return Path(self.output_dir) / (self.output_filename or self.grib_filename)

    @property
    def index_path(self) -> Path:
        return Path(self.output_dir) / self.idx_filename

    def selection(self) -> SelectionRequest:
        return SelectionRequest.from_mapping(self.parameters)

    @classmethod
    def get_file_keys(cls) -> set[str]:
        """Returns a set of all keys that may appear in the JSON file."""
        internal_fields = {"config_path", "dry_run"}
        return {key for key in cls.model_fields if key not in internal_fields}
