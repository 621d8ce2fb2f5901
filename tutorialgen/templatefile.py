"""Parsing and rendering of tutorial template files."""

from __future__ import annotations

import json
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from tutorialgen.inputfiles import InputFile

TUTORIAL_CODE_START_LINE = "```START_TUTORIAL_CODE"
TUTORIAL_CODE_END_LINE = "```END_TUTORIAL_CODE"
CODE_ESCAPE = "```"

# The start line may be followed by a vertical bar and comma-separated options.
_START_LINE = re.escape(TUTORIAL_CODE_START_LINE) + r"(\|[^\n]*)?"
_END_LINE = re.escape(TUTORIAL_CODE_END_LINE)

_TUTORIAL_CODE_RE = re.compile(r"^" + _START_LINE + r"\n(.*?)\n" + _END_LINE + r"$", re.S | re.M)
_ADJACENT_RE = re.compile(r"^" + _END_LINE + r"\n" + _START_LINE + r"$\n", re.S | re.M)
_START_LINE_RE = re.compile(r"^" + _START_LINE + r"$", re.M)
_END_LINE_RE = re.compile(r"^" + _END_LINE + r"$", re.M)

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


class TemplateError(ValueError):
    """Raised when a template cannot be read, parsed or rendered."""


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


@dataclass(frozen=True)
class TutorialCodePart:
    """A block of tutorial code and whether it is expected to fail."""

    code: str
    want_fail: bool = False


@dataclass
class ParsedTemplateFile:
    """Template content together with the tutorial code blocks found in it."""

    full_content: str
    tutorial_code_parts: list[TutorialCodePart] = field(default_factory=list)

    def render(self, rendered_code: Iterable[str]) -> str:
        """Replace each tutorial code block with the matching rendered code."""
        codes = list(rendered_code)
        count = 0

        def substitute(_match: re.Match[str]) -> str:
            nonlocal count
            if count >= len(codes):
                raise TemplateError(
                    f"index {count} is >= than number of rendered code parts {len(codes)}"
                )
            block = "\n".join((TUTORIAL_CODE_START_LINE, codes[count], TUTORIAL_CODE_END_LINE))
            count += 1
            return block

        rendered = _TUTORIAL_CODE_RE.sub(substitute, self.full_content)
        if count != len(self.tutorial_code_parts):
            raise TemplateError(
                f"only found {count} tutorial code parts in content, "
                f"but expected {len(self.tutorial_code_parts)}"
            )

        rendered = _ADJACENT_RE.sub("", rendered)
        rendered = _START_LINE_RE.sub(CODE_ESCAPE, rendered)
        return _END_LINE_RE.sub(CODE_ESCAPE, rendered)


@dataclass(frozen=True)
class TemplateFileWithContent:
    """An input file paired with its parsed content."""

    file_info: InputFile
    parsed_content: ParsedTemplateFile


def _parse_bool(value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean {_quote(value)}")


def parse_options(options: str) -> dict[str, bool]:
    """Parse a comma-separated option string into TutorialCodePart keyword arguments."""
    result: dict[str, bool] = {}
    for option in options.split(","):
        if option.startswith("fail="):
            try:
                result["want_fail"] = _parse_bool(option[len("fail="):])
            except ValueError as err:
                raise TemplateError(f"failed to parse option {_quote(option)}: {err}") from err
        else:
            raise TemplateError(f"unknown option: {_quote(option)}")
    return result


def parse_template_file(content: str) -> ParsedTemplateFile:
    """Find the tutorial code blocks in template content."""
    parts = []
    for match in _TUTORIAL_CODE_RE.finditer(content):
        options_match = match.group(1) or ""
        options = options_match[1:]
        kwargs: dict[str, bool] = {}
        if options:
            try:
                kwargs = parse_options(options)
            except TemplateError as err:
                raise TemplateError(f"failed to apply options: {err}") from err
        parts.append(TutorialCodePart(code=match.group(2), **kwargs))
    return ParsedTemplateFile(full_content=content, tutorial_code_parts=parts)


def read_template_file(
    input_dir: str | os.PathLike[str], input_file: InputFile
) -> TemplateFileWithContent:
    """Read and parse the template named by input_file inside input_dir."""
    path = Path(input_dir) / input_file.template_file_name
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as err:
        raise TemplateError(f"failed to read file: {err}") from err
    try:
        parsed = parse_template_file(content)
    except TemplateError as err:
        raise TemplateError(f"failed to parse template file: {err}") from err
    return TemplateFileWithContent(file_info=input_file, parsed_content=parsed)