"""Discovery and validation of numbered template files."""

from __future__ import annotations

import json
import os
import re
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

TEMPLATE_SUFFIX = ".tmpl"

_TEMPLATE_FILE_RE = re.compile(r"([0-9]+)_(.+)" + re.escape(TEMPLATE_SUFFIX))


class InputFileError(ValueError):
    """Raised when template input files are missing, malformed or conflicting."""


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _format_list(values: Iterable[str]) -> str:
    return "[" + " ".join(values) + "]"


@dataclass(frozen=True)
class InputFile:
    """A template file whose name has the form ``<ordering>_<name>[.<ext>].tmpl``."""

    template_file_name: str
    ordering: int
    name: str
    original_extension: str = ""

    def output_dir_name(self) -> str:
        return f"{self.ordering}_{self.name}"

    def output_script_file_name(self) -> str:
        return f"run-{self.name}.sh"

    def output_rendered_file_name(self) -> str:
        return self.name + self.original_extension

    def docker_tag(self, tag_prefix: str) -> str:
        return f"{tag_prefix}:{self.name}"


def parse_input_file(file_name: str) -> InputFile:
    """Parse a template file name, raising InputFileError if it does not match."""
    match = _TEMPLATE_FILE_RE.fullmatch(file_name)
    if match is None:
        raise InputFileError(f"input {_quote(file_name)} does not match required format")
    ordering = int(match.group(1))
    base = match.group(2)
    name, extension = base, ""
    if "." in base:
        head, _, tail = base.rpartition(".")
        name, extension = head, "." + tail
    return InputFile(
        template_file_name=file_name,
        ordering=ordering,
        name=name,
        original_extension=extension,
    )


def get_input_files(file_names: Iterable[str]) -> list[InputFile]:
    """Return the valid template files sorted by ordering.

    Names that do not match the template format are ignored. Raises
    InputFileError if two templates share an ordering value or a name.
    """
    input_files: list[InputFile] = []
    orderings: dict[int, list[str]] = defaultdict(list)
    names: dict[str, list[str]] = defaultdict(list)

    for file_name in file_names:
        try:
            current = parse_input_file(file_name)
        except InputFileError:
            continue
        input_files.append(current)
        orderings[current.ordering].append(current.template_file_name)
        names[current.name].append(current.template_file_name)

    input_files.sort(key=lambda f: f.ordering)

    for ordering in sorted(orderings):
        templates = orderings[ordering]
        if len(templates) > 1:
            raise InputFileError(
                f"multiple inputs have the ordering value {ordering}: {_format_list(templates)}"
            )

    for name in sorted(names):
        templates = names[name]
        if len(templates) > 1:
            raise InputFileError(
                f"multiple inputs have the name {_quote(name)}: {_format_list(templates)}"
            )

    return input_files


def get_input_files_from_dir(input_dir: str | os.PathLike[str]) -> list[InputFile]:
    """Collect template files from the regular entries of a directory."""
    try:
        with os.scandir(input_dir) as entries:
            file_names = sorted(
                entry.name for entry in entries if not entry.is_dir(follow_symlinks=False)
            )
    except OSError as err:
        raise InputFileError(f"failed to read directory: {err}") from err
    return get_input_files(file_names)


def find_index_with_ordering(want_ordering: int, files: Sequence[InputFile]) -> int | None:
    """Return the index of the first file with the given ordering, or None."""
    return next(
        (idx for idx, current in enumerate(files) if current.ordering == want_ordering),
        None,
    )