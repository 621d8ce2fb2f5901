# tutorialgen

tutorialgen builds tutorial documents whose code samples really run. You
write each tutorial step as a template that holds marked code blocks. The
generator runs those blocks in a chain of Docker images, one image per step.
It then writes the finished document, with every command followed by the
output it actually produced.

## Installation

```
pip install .
```

The package has no runtime dependencies. To run the builds you need a working
`docker` command on your `PATH`. For the tests, install the `test` extra
(`pip install .[test]`) and run `pytest`.

## Template files

Templates live in one input directory. Each file name has the form
`<ordering>_<name>[.<ext>].tmpl`, for example `1_add.md.tmpl`. The generator
ignores subdirectories and any file whose name does not have that form.
Templates are processed in order of their ordering number.

Two templates may not share an ordering number, and two may not share a
name. Either conflict raises `InputFileError`.

Inside a template, mark each block of code to run like this:

````
```START_TUTORIAL_CODE
mkdir "testDir"
```END_TUTORIAL_CODE
````

A start line can take options after a vertical bar. The only option is
`fail=<bool>`. With `fail=true` the command may fail without stopping the
build:

````
```START_TUTORIAL_CODE|fail=true
some-command-that-fails
```END_TUTORIAL_CODE
````

An unknown option, or a value that is not a boolean, raises `TemplateError`.

In the rendered output, each marker line becomes a plain three-backtick fence.
Each command is shown as `➜ <command>`, exactly as the template wrote it,
followed on the lines below by the output it produced. When one block ends on
the line directly above the start of the next, the two are merged into a
single fenced block.

## Running

```
docs-generator --input-dir templates --output-dir docs --base-image ubuntu:22.04
```

`python -m tutorialgen.cli` takes the same arguments.

For each selected template, the generator does the following:

1. Creates `<output-dir>/<ordering>_<name>/` and writes two files into it:
   - `run-<name>.sh`, a bash script that prints and runs every code block;
   - a `Dockerfile` that adds and runs the script. It builds on the image of
     the template before it, or on `--base-image` for the first template in
     the directory.
2. Runs `docker build --no-cache -t <tag-prefix>:<name> .` in that directory,
   with `DOCKER_BUILDKIT=0`.
3. Reads the command output back from the build log and writes the rendered
   document to `<output-dir>/<name><ext>`.
4. Removes the per-step directory, unless `--leave-generated-files` is given.

With `--run-docker-build false`, only the script and Dockerfile are written.
Nothing is built and no document is rendered.

Options:

| Option | Default | Meaning |
| --- | --- | --- |
| `--input-dir` | required | directory that holds the templates |
| `--output-dir` | required | directory for rendered documents |
| `--base-image` | required | image the first template builds on |
| `--tag-prefix` | `docsgenerator` | prefix of the Docker tags |
| `--run-docker-build [BOOL]` | `true` | run `docker build` for each step |
| `--suppress-docker-output [BOOL]` | `false` | hide the build output |
| `--start-step` | `-1` (first) | ordering number to start at |
| `--end-step` | `-1` (last) | ordering number to end at |
| `--leave-generated-files [BOOL]` | `false` | keep the per-step build directories |

A boolean option given without a value means `true`. Each accepts `1`, `t`,
`true`, `0`, `f`, `false` and their capitalised forms.

The command prints progress to standard output. It exits with status 0 on
success. On failure it prints `Error: ...` to standard error and exits with
status 1. A run fails if:

- no templates are found;
- a start or end step matches no template;
- the build fails;
- the number of captured commands differs from the number of code blocks.

## Library use

The same steps are available from Python:

```python
import sys
from tutorialgen.generator import Params, generate

generate("templates", "docs", "ubuntu:22.04", Params(start_step=1), sys.stdout)
```

`Params` has the fields `tag_prefix`, `run_docker_build`,
`suppress_docker_output`, `start_step`, `end_step` and
`leave_generated_files`. A `start_step` or `end_step` of `None` means the
first or the last template. Failures raise `GenerateError`.

The parts can also be used on their own:

- `tutorialgen.inputfiles`: `parse_input_file`, `get_input_files`,
  `get_input_files_from_dir` and `find_index_with_ordering`, working on
  `InputFile` values.
- `tutorialgen.templatefile`: `parse_template_file`, `read_template_file`,
  `parse_options` and `ParsedTemplateFile.render`.
- `tutorialgen.outputfile`: `bash_script`, `docker_file`,
  `write_output_files` and `parse_bash_run_cmds`. The last returns
  `BashRunCmd` values, and their `str()` gives the rendered `➜` form.
- `tutorialgen.generator.run_docker_build` runs a single build and returns its
  combined output.

## Artifact helpers

`tutorialgen.locator` defines `OSArch`, `Locator`, `LocatorParam` and
`LocatorWithResolverParam`:

- `LocatorParam` adds a per-platform `checksums` mapping to a locator.
- `str(Locator(...))` gives `group:product:version`.

`tutorialgen.resolver` provides:

- `resolve_artifact` tries the locator's own resolver if it has one.
  Otherwise it tries the default resolvers in order until one succeeds. If
  the locator lists a checksum for the platform, the checksum of the
  resolved file must match it. Failures raise `ResolveError`. A resolved
  file is left in place even when its checksum does not match.
- `resolve_artifact_tgz` does the same. For a `.tgz`, it checksums the single
  file inside the archive.
- `copy_single_file_tgz_content` writes the content of the single file in a
  `.tgz` stream. It raises `ResolveError` unless the archive has exactly one
  entry.
- `tgz_file_content_hash` returns the SHA-256 of that single file.
- `sha256_checksum_file` returns the SHA-256 of a file.

## What it does not do

`Resolver` is an abstract base class with one method,
`resolve(locator, os_arch, dst, stdout)`. The package ships no concrete
resolver. It has no URL templates and no downloading of artifacts from local
paths or over HTTP. To fetch anything, supply your own `Resolver` subclass.