"""Generation of build scripts and parsing of their captured output."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from tutorialgen.templatefile import TemplateFileWithContent, TutorialCodePart

BASH_RUN_START = "BASH_RUN:" + "-" * 13
OUTPUT_START = "OUTPUT:" + "-" * 15
END_DELIMITER = "-" * 22

_BASH_SCRIPT_COMMON_CODE_TEMPLATE = """#!/usr/bin/env bash
print_then_run () {
    echo "%s"
    echo "$1"
    echo "%s"

    echo "%s"
    eval "$1"
    echo "%s"
}
"""

_BASH_SCRIPT_SINGLE_CMD_TEMPLATE = """
set +e
read -d '' ACTION <<"EOF"
%s
EOF
set -e
print_then_run "$ACTION"
"""

_DOCKERFILE_TEMPLATE = """FROM {{FROM_IMAGE}}

ADD {{SCRIPT_FILE}} /scripts/
RUN /scripts/{{SCRIPT_FILE}} 2>&1
"""

_BASH_OUTPUT_RE = re.compile(
    r"^" + re.escape(BASH_RUN_START) + r"\n"
    r"(.*?)\n"
    + re.escape(END_DELIMITER) + r"\n"
    + re.escape(OUTPUT_START) + r"\n"
    r"(.*?)\n?"
    + re.escape(END_DELIMITER) + r"$",
    re.S | re.M,
)


@dataclass
class BashRunCmd:
    """A command that was run and the output it produced."""

    cmd: str
    output: str = ""

    def __str__(self) -> str:
        text = "➜ " + self.cmd
        if self.output:
            text += "\n" + self.output
        return text


def docker_file(from_image: str, script_file_name: str) -> str:
    """Return a Dockerfile that runs the script on top of from_image."""
    return _DOCKERFILE_TEMPLATE.replace("{{FROM_IMAGE}}", from_image).replace(
        "{{SCRIPT_FILE}}", script_file_name
    )


def bash_script_common_code() -> str:
    """Return the script preamble that prints each command and its output between markers."""
    return _BASH_SCRIPT_COMMON_CODE_TEMPLATE % (
        BASH_RUN_START,
        END_DELIMITER,
        OUTPUT_START,
        END_DELIMITER,
    )


def bash_script(code_parts: Iterable[TutorialCodePart]) -> str:
    """Return a bash script that runs every code part in order."""
    pieces = [bash_script_common_code()]
    for part in code_parts:
        code = part.code + " || true" if part.want_fail else part.code
        pieces.append(_BASH_SCRIPT_SINGLE_CMD_TEMPLATE % code)
    return "".join(pieces)


def write_output_files(
    output_dir: str | os.PathLike[str], in_file: TemplateFileWithContent, from_image: str
) -> Path:
    """Write the script and Dockerfile for a template and return their directory."""
    info = in_file.file_info
    current_dir = Path(output_dir) / info.output_dir_name()
    current_dir.mkdir(mode=0o755, parents=True, exist_ok=True)

    script_name = info.output_script_file_name()
    script_path = current_dir / script_name
    script_path.write_text(bash_script(in_file.parsed_content.tutorial_code_parts), encoding="utf-8")
    script_path.chmod(0o755)

    dockerfile_path = current_dir / "Dockerfile"
    dockerfile_path.write_text(docker_file(from_image, script_name), encoding="utf-8")
    dockerfile_path.chmod(0o644)
    return current_dir


def parse_bash_run_cmds(output: str) -> list[BashRunCmd]:
    """Extract the commands and outputs printed by a generated script."""
    return [
        BashRunCmd(cmd=match.group(1), output=match.group(2))
        for match in _BASH_OUTPUT_RE.finditer(output)
    ]