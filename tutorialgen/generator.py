"""Build tutorial documents by running their code blocks in chained Docker images."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from tutorialgen.inputfiles import InputFile, find_index_with_ordering, get_input_files_from_dir
from tutorialgen.outputfile import BashRunCmd, parse_bash_run_cmds, write_output_files
from tutorialgen.templatefile import TemplateError, TemplateFileWithContent, read_template_file

DEFAULT_TAG_PREFIX = "docsgenerator"


class GenerateError(Exception):
    """Raised when generating the documents for a set of templates fails."""


@dataclass(frozen=True)
class Params:
    """Options that control a generation run.

    ``start_step`` and ``end_step`` are ordering values of templates; None means
    the first and the last template respectively.
    """

    tag_prefix: str = DEFAULT_TAG_PREFIX
    run_docker_build: bool = True
    suppress_docker_output: bool = False
    start_step: int | None = None
    end_step: int | None = None
    leave_generated_files: bool = False


def _describe(files: Sequence[InputFile]) -> str:
    return "[" + " ".join(f.template_file_name for f in files) + "]"


def _resolve_step(step: int | None, default: int, files: Sequence[InputFile], label: str) -> int:
    if step is None:
        return default
    idx = find_index_with_ordering(step, files)
    if idx is None:
        raise GenerateError(f"could not find specified {label} step {step} in {_describe(files)}")
    return idx


def generate(
    input_dir: str | os.PathLike[str],
    output_dir: str | os.PathLike[str],
    base_image: str,
    params: Params | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Process the templates in input_dir and write the rendered documents to output_dir.

    The first template builds on base_image; every later one builds on the image
    tagged for the template before it.
    """
    params = params or Params()
    out = sys.stdout if stdout is None else stdout

    input_files = get_input_files_from_dir(input_dir)
    print(f"Found {len(input_files)} template file(s)", file=out)

    start_idx = _resolve_step(params.start_step, 0, input_files, "start")
    end_idx = _resolve_step(params.end_step, len(input_files) - 1, input_files, "end")
    if not input_files:
        raise GenerateError(f"no template files found in {os.fspath(input_dir)}")

    num_files = end_idx - start_idx + 1
    print(
        f"Processing {num_files} template file(s) starting at number "
        f"{input_files[start_idx].ordering} and ending at number {input_files[end_idx].ordering}",
        file=out,
    )

    for count, idx in enumerate(range(start_idx, end_idx + 1), start=1):
        input_file = input_files[idx]
        try:
            print(f"Processing {input_file.template_file_name} ({count}/{num_files})", file=out)
            from_image = base_image if idx == 0 else input_files[idx - 1].docker_tag(params.tag_prefix)
            _process_template(input_dir, output_dir, input_file, from_image, params, out)
        except GenerateError as err:
            raise GenerateError(
                f"failed running task for template {input_file.template_file_name} "
                f"({count}/{num_files}): {err}"
            ) from err


def _process_template(
    input_dir: str | os.PathLike[str],
    output_dir: str | os.PathLike[str],
    input_file: InputFile,
    from_image: str,
    params: Params,
    out: TextIO,
) -> None:
    try:
        content = read_template_file(input_dir, input_file)
    except TemplateError as err:
        raise GenerateError(f"failed to read template file: {err}") from err

    print("Writing output files...", file=out)
    try:
        current_dir = write_output_files(output_dir, content, from_image)
    except OSError as err:
        raise GenerateError(
            f"failed to write output files for {input_file.template_file_name}: {err}"
        ) from err

    try:
        if params.run_docker_build:
            _build_and_render(output_dir, current_dir, content, params, out)
    except BaseException:
        if not params.leave_generated_files:
            shutil.rmtree(current_dir, ignore_errors=True)
        raise

    if not params.leave_generated_files:
        try:
            shutil.rmtree(current_dir)
        except OSError as err:
            raise GenerateError(f"failed to remove output directory: {err}") from err


def _build_and_render(
    output_dir: str | os.PathLike[str],
    current_dir: Path,
    content: TemplateFileWithContent,
    params: Params,
    out: TextIO,
) -> None:
    input_file = content.file_info
    name = input_file.template_file_name

    print("Running Docker build...", file=out)
    try:
        build_output = run_docker_build(
            current_dir, input_file.docker_tag(params.tag_prefix), params.suppress_docker_output, out
        )
    except GenerateError as err:
        raise GenerateError(f"docker build failed for {name}: {err}") from err

    commands = parse_bash_run_cmds(build_output)
    parts = content.parsed_content.tutorial_code_parts
    if len(commands) != len(parts):
        raise GenerateError(
            "number of command outputs did not match number of tutorial code parts: "
            f"{len(commands)} != {len(parts)}"
        )

    # Show the command as written in the template rather than as modified by its options.
    rendered_code = [
        str(BashRunCmd(cmd=part.code, output=command.output))
        for command, part in zip(commands, parts)
    ]
    try:
        rendered = content.parsed_content.render(rendered_code)
    except TemplateError as err:
        raise GenerateError(f"failed to render parsed content for {name}: {err}") from err

    rendered_path = Path(output_dir) / input_file.output_rendered_file_name()
    try:
        rendered_path.write_text(rendered, encoding="utf-8")
    except OSError as err:
        raise GenerateError(f"failed to write rendered content for {name}: {err}") from err


def run_docker_build(
    work_dir: str | os.PathLike[str],
    tag: str,
    suppress_docker_output: bool,
    stdout: TextIO,
) -> str:
    """Run ``docker build`` in work_dir and return its combined output."""
    args = ["docker", "build", "--no-cache", "-t", tag, "."]
    env = {**os.environ, "DOCKER_BUILDKIT": "0"}
    description = "[" + " ".join(args) + "]"

    chunks: list[str] = []
    try:
        with subprocess.Popen(
            args,
            cwd=work_dir,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        ) as proc:
            assert proc.stdout is not None
            for line in proc.stdout:
                chunks.append(line)
                if not suppress_docker_output:
                    stdout.write(line)
            returncode = proc.wait()
    except OSError as err:
        raise GenerateError(f"command {description} failed: {err}") from err

    output = "".join(chunks)
    if returncode != 0:
        message = f"command {description} failed"
        if suppress_docker_output:
            message += " with output " + output
        raise GenerateError(f"{message}: exit status {returncode}")
    return output