from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_yaml import parse_yaml_file_as

RESERVED_FIELDS = (
    "max_count",
    "byte_offset",
    "line_number",
    "with_filename",
    "no_filename",
    "label",
    "null_data",
    "line_buffered",
    "quiet",
)


class MatchOptions(BaseModel):
    """Behavioral switches shared by every matcher of one request.

    https://www.gnu.org/software/grep/manual/grep.html#Matching-Control
    """

    ignore_case: bool = False
    invert_match: bool = False
    word_regexp: bool = False
    line_regexp: bool = False

    # accepted but not acted upon
    max_count: Optional[int] = Field(default=None, ge=0)
    byte_offset: bool = False
    line_number: bool = False
    with_filename: bool = False
    no_filename: bool = False
    label: Optional[str] = None
    null_data: bool = False
    line_buffered: bool = False
    quiet: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _line_regexp_wins(cls, data: Any) -> Any:
        # -x makes -w a no-op, whichever was given first
        if isinstance(data, dict) and data.get("line_regexp"):
            return data | {"word_regexp": False}
        return data

    def reserved_in_use(self) -> list[str]:
        return [
            name
            for name in RESERVED_FIELDS
            if getattr(self, name) != type(self).model_fields[name].default
        ]


class GrepConfig(BaseModel):
    patterns: list[str] = []
    pattern_files: list[Path] = []
    options: MatchOptions = MatchOptions()
    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> GrepConfig:
        return parse_yaml_file_as(cls, yaml_path)

    def merge_cli(
        self,
        regexps: list[str],
        pattern_files: list[Path],
        **flags: bool,
    ) -> GrepConfig:
        """Overlay command-line values; a flag set on the command line always wins."""
        options = self.options.model_dump() | {
            name: True for name, value in flags.items() if value
        }
        return GrepConfig(
            patterns=self.patterns + regexps,
            pattern_files=self.pattern_files + pattern_files,
            options=MatchOptions.model_validate(options),
        )
