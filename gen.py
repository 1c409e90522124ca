"""TA-Lib wrapper generator for Rust.

Reads bindgen-style `extern` declarations for the TA-Lib C library and emits
one safe Rust wrapper function per indicator, plus a `mod.rs` index.

Usage:
    python gen.py --input ta_func.rs --output src/indicators
"""

import argparse
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import NamedTuple


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    input_path: Path
    output_dir: Path


VALID_ERROR_CODES = {
    "PATH_NOT_FOUND",
    "INPUT_NOT_FILE",
    "OUTPUT_NOT_DIRECTORY",
}


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_input_path(path: Path) -> Path:
    if not path.exists():
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"Path for --input does not exist: {path}",
            "Pass the bindgen output file, e.g. --input ta_func.rs",
        )
    if not path.is_file():
        raise ConfigError(
            "INPUT_NOT_FILE",
            f"Path for --input is not a file: {path}",
            "Pass the declaration file itself, not its directory.",
        )
    return path


def validate_output_dir(path: Path) -> Path:
    if path.exists() and not path.is_dir():
        raise ConfigError(
            "OUTPUT_NOT_DIRECTORY",
            f"Path for --output exists and is not a directory: {path}",
            "Pass a directory; it is created if absent.",
        )
    return path


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate Rust wrappers for TA-Lib declarations",
        usage="%(prog)s --input [path] --output [path]",
    )
    parser.add_argument(
        "-i", "--input", type=Path, required=True, help="Declaration file to read."
    )
    parser.add_argument(
        "-o", "--output", type=Path, required=True, help="Directory to write into."
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig:
    return GenerateConfig(
        input_path=validate_input_path(args.input),
        output_dir=validate_output_dir(args.output),
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig:
    return validate_config(parse_args(argv))


# ===--- Generation errors ---=== #


EXTRACTION_ERROR_CODES = frozenset({"NO_DECLARATIONS", "MALFORMED_DECLARATION"})
TYPE_RESOLUTION_ERROR_CODES = frozenset({"UNKNOWN_TYPE", "UNKNOWN_ELEMENT_TYPE"})
SYNTHESIS_ERROR_CODES = frozenset(
    {
        "NO_INPUTS",
        "FIRST_INPUT_NOT_BUFFER",
        "NO_OUTPUTS",
        "SCALAR_OUTPUT",
        "MISSING_BOOKKEEPING",
        "DUPLICATE_NAME",
        "EMPTY_NAME",
    }
)


class GenerationError(Exception):
    """Fatal failure while turning declarations into wrapper source.

    Every subclass restricts `code` to its own fixed set so callers can
    branch on it without parsing the message.
    """

    valid_codes: frozenset[str] = frozenset()

    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in self.valid_codes:
            raise ValueError(f"Unknown {type(self).__name__} code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


class ExtractionError(GenerationError):
    valid_codes = EXTRACTION_ERROR_CODES


class TypeResolutionError(GenerationError):
    valid_codes = TYPE_RESOLUTION_ERROR_CODES

    def __init__(
        self,
        code: str,
        raw_type: str,
        message: str,
        suggestion: str | None = None,
    ):
        super().__init__(code, message, suggestion)
        self.raw_type = raw_type


class SynthesisError(GenerationError):
    valid_codes = SYNTHESIS_ERROR_CODES


# ===--- Constants ---=== #

FUNCTION_PREFIX = "TA_"
WRAPPER_CRATE = "ta_lib_wrapper"
MODULE_EXTENSION = ".rs"
MANIFEST_FILENAME = "mod.rs"

# Indicator entry points only: TA_SMA, TA_PLUS_DI, TA_CDL3BLACKCROWS. The
# single-precision TA_S_* variants are excluded; lookback helpers and
# camel-case utilities fail on their lower-case letters.
_DECLARATION_NAME_RE = re.compile(r"^TA_(?!S_)[A-Z0-9_]+$")

ROLE_INPUT = "input"
ROLE_OUTPUT = "output"
ROLE_IGNORED = "ignored"

BEGIN_INDEX_OUTPUT = "outBegIdx"
ELEMENT_COUNT_OUTPUT = "outNBElement"
BOOKKEEPING_OUTPUTS = frozenset({BEGIN_INDEX_OUTPUT, ELEMENT_COUNT_OUTPUT})

SCALAR_TYPES = MappingProxyType(
    {
        "::std::os::raw::c_int": "i32",
        "f32": "TA_Real",
        "f64": "TA_Real",
        "TA_MAType": "TA_MAType",
    }
)
"""Closed table of scalar raw types, matched verbatim."""

ELEMENT_TYPES = MappingProxyType(
    {
        "f32": "TA_Real",
        "f64": "TA_Real",
        "c_int": "TA_Integer",
    }
)
"""Closed table of buffer element tags (last path segment of the pointee)."""

RUST_RESERVED = frozenset(
    {
        "as", "async", "await", "break", "const", "continue", "crate", "dyn",
        "else", "enum", "extern", "false", "fn", "for", "if", "impl", "in",
        "let", "loop", "match", "mod", "move", "mut", "pub", "ref", "return",
        "self", "static", "struct", "super", "trait", "true", "type",
        "unsafe", "use", "where", "while",
    }
)

BEGIN_LOCAL = "out_begin"
SIZE_LOCAL = "out_size"
RET_CODE_LOCAL = "ret_code"
SYNTHESIZED_LOCALS = frozenset({BEGIN_LOCAL, SIZE_LOCAL, RET_CODE_LOCAL})


# ===--- Data classes ---=== #


@dataclass(frozen=True)
class Parameter:
    name: str
    raw_type: str


@dataclass(frozen=True)
class Signature:
    """One recognized foreign declaration.

    `parameters` is a tuple in declaration order; the foreign call replays
    it positionally, so nothing downstream may reorder it.
    """

    name: str
    parameters: tuple[Parameter, ...]
    line: int = 0

    @property
    def short_name(self) -> str:
        return self.name.removeprefix(FUNCTION_PREFIX)

    @property
    def module_name(self) -> str:
        return self.short_name.lower()


@dataclass(frozen=True)
class ClassifiedParameter:
    parameter: Parameter
    role: str
    name: str


@dataclass(frozen=True)
class ResolvedParameter:
    name: str
    role: str
    host_type: str
    is_buffer: bool
    element_type: str | None
    raw_name: str
    raw_type: str

    @property
    def local_name(self) -> str:
        """Binding used inside the wrapper body.

        Outputs are prefixed so they never shadow an input of the same
        cleaned name (inReal and outReal both clean to `real`).
        """
        if self.role == ROLE_OUTPUT:
            return f"out_{self.name}"
        return self.name


@dataclass(frozen=True)
class FunctionArtifact:
    module_name: str
    filename: str
    source: str
    signature: Signature


# ===--- Declaration parsing ---=== #


class Token(NamedTuple):
    kind: str
    value: str
    line: int


_TOKEN_RE = re.compile(
    r"""
      (?P<SKIP>[ \t\r\n\f\v]+|//[^\n]*|"(?:\\.|[^"\\\n])*")
    | (?P<BLOCK_COMMENT>/\*)
    | (?P<PATH_SEP>::)
    | (?P<ARROW>->)
    | (?P<IDENT>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<PUNCT>[():,*;])
    | (?P<OTHER>.)
    """,
    re.VERBOSE | re.DOTALL,
)
_COMMENT_DELIMITER_RE = re.compile(r"/\*|\*/")


def skip_block_comment(text: str, start: int) -> int:
    """Return the index just past the block comment opening at `start`.

    Block comments nest, so every `/*` needs its own `*/`. An unterminated
    comment runs to the end of the text.
    """
    depth = 0
    for match in _COMMENT_DELIMITER_RE.finditer(text, start):
        depth += 1 if match.group() == "/*" else -1
        if depth == 0:
            return match.end()
    return len(text)


def tokenize(text: str) -> list[Token]:
    """Split declaration text into tokens, dropping whitespace and comments.

    Punctuation tokens use the character itself as their kind. Anything the
    grammar has no use for (brackets, digits, attributes) becomes OTHER, so
    tokenizing never fails; only the parser decides what is malformed.
    """
    tokens: list[Token] = []
    line = 1
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        kind = match.lastgroup
        if kind == "BLOCK_COMMENT":
            end = skip_block_comment(text, position)
            line += text.count("\n", position, end)
            position = end
            continue
        value = match.group()
        if kind == "PUNCT":
            kind = value
        if kind != "SKIP":
            tokens.append(Token(kind, value, line))
        line += value.count("\n")
        position = match.end()
    return tokens


class DeclarationParser:
    """Recursive-descent parser for `pub fn TA_X(name: type, ...)` declarations.

    Grammar:
        declaration := "pub" "fn" IDENT "(" [param ("," param)* [","]] ")"
        param       := IDENT ":" type
        type        := "*" ["const" | "mut"] type | path
        path        := ["::"] IDENT ("::" IDENT)*

    Only declarations whose name matches the indicator pattern are parsed;
    every other token is skipped.
    """

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.position = 0
        self.function = ""

    def peek(self, offset: int = 0) -> Token | None:
        index = self.position + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    def expect(self, kind: str, expected: str | None = None) -> Token:
        token = self.peek()
        if token is None or token.kind != kind:
            self.fail(token, expected or repr(kind))
        self.position += 1
        return token

    def fail(self, token: Token | None, expected: str):
        if token is None:
            found = "end of input"
            where = "at end of input"
        else:
            found = repr(token.value)
            where = f"at line {token.line}"
        raise ExtractionError(
            "MALFORMED_DECLARATION",
            f"Malformed declaration {self.function} {where}: "
            f"expected {expected}, found {found}",
            "Parameters must read `name: type`, e.g. `inReal: *const f64`.",
        )

    def at_declaration(self) -> bool:
        pub, fn, name, paren = (self.peek(i) for i in range(4))
        if pub is None or fn is None or name is None or paren is None:
            return False
        return (
            pub.kind == "IDENT"
            and pub.value == "pub"
            and fn.kind == "IDENT"
            and fn.value == "fn"
            and name.kind == "IDENT"
            and paren.kind == "("
            and _DECLARATION_NAME_RE.match(name.value) is not None
        )

    def declarations(self) -> Iterator[Signature]:
        while self.peek() is not None:
            if not self.at_declaration():
                self.position += 1
                continue
            signature = self.parse_declaration()
            # TA_Initialize-style entry points take nothing to wrap.
            if signature.parameters:
                yield signature

    def parse_declaration(self) -> Signature:
        self.position += 2  # pub fn
        name = self.expect("IDENT", "function name")
        self.function = name.value
        self.expect("(")

        parameters: list[Parameter] = []
        while True:
            token = self.peek()
            if token is not None and token.kind == ")":
                break
            parameters.append(self.parse_param())
            token = self.peek()
            if token is not None and token.kind == ",":
                self.position += 1
                continue
            if token is None or token.kind != ")":
                self.fail(token, "',' or ')'")
        self.expect(")")
        return Signature(name.value, tuple(parameters), name.line)

    def parse_param(self) -> Parameter:
        name = self.expect("IDENT", "parameter name")
        self.expect(":", f"':' after {name.value}")
        return Parameter(name.value, self.parse_type())

    def parse_type(self) -> str:
        token = self.peek()
        if token is not None and token.kind == "*":
            self.position += 1
            qualifier = ""
            token = self.peek()
            if token is not None and token.kind == "IDENT" and token.value in (
                "const",
                "mut",
            ):
                self.position += 1
                qualifier = f"{token.value} "
            return f"*{qualifier}{self.parse_type()}"
        return self.parse_path()

    def parse_path(self) -> str:
        parts: list[str] = []
        token = self.peek()
        if token is not None and token.kind == "PATH_SEP":
            self.position += 1
            parts.append("")
        parts.append(self.expect("IDENT", "type name").value)
        while True:
            token = self.peek()
            if token is None or token.kind != "PATH_SEP":
                break
            self.position += 1
            parts.append(self.expect("IDENT", "path segment").value)
        return "::".join(parts)


def extract_signatures(text: str) -> Iterator[Signature]:
    """Yield every indicator declaration found in `text`, in file order.

    Raises:
        ExtractionError: MALFORMED_DECLARATION when a recognized declaration
            does not parse, or NO_DECLARATIONS once the text is exhausted
            without a single match.
    """
    parser = DeclarationParser(tokenize(text))
    found = 0
    for signature in parser.declarations():
        found += 1
        yield signature
    if not found:
        raise ExtractionError(
            "NO_DECLARATIONS",
            "No `pub fn TA_*(...)` declarations found in input.",
            "Check that --input points at the bindgen output for ta_func.h.",
        )


# ===--- Role classification ---=== #

_ROLE_PREFIXES = (
    ("optIn", ROLE_INPUT),
    ("in", ROLE_INPUT),
    ("out", ROLE_OUTPUT),
)


def split_role_prefix(name: str) -> tuple[str, str]:
    """Return (role, remainder) for a raw parameter name.

    Any name starting with a role prefix takes that role; the remainder may
    be empty (a bare `in`), which validate_signature rejects.
    """
    for prefix, role in _ROLE_PREFIXES:
        if name.startswith(prefix):
            return role, name[len(prefix):]
    return ROLE_IGNORED, name


def classify_parameter(name: str) -> str:
    role, _rest = split_role_prefix(name)
    if role == ROLE_OUTPUT and name in BOOKKEEPING_OUTPUTS:
        return ROLE_IGNORED
    return role


def to_snake_case(name: str) -> str:
    name = re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", name)
    return re.sub(r"_+", "_", name).strip("_").lower()


def clean_name(name: str) -> str:
    _role, rest = split_role_prefix(name)
    snake = to_snake_case(rest)
    if snake in RUST_RESERVED:
        return snake + "_"
    return snake


def classify_parameters(
    signature: Signature,
) -> tuple[tuple[ClassifiedParameter, ...], tuple[ClassifiedParameter, ...]]:
    inputs: list[ClassifiedParameter] = []
    outputs: list[ClassifiedParameter] = []
    for param in signature.parameters:
        role = classify_parameter(param.name)
        if role == ROLE_INPUT:
            inputs.append(ClassifiedParameter(param, role, clean_name(param.name)))
        elif role == ROLE_OUTPUT:
            outputs.append(ClassifiedParameter(param, role, clean_name(param.name)))
    return tuple(inputs), tuple(outputs)


# ===--- Type resolution ---=== #

_POINTER_RE = re.compile(r"^\*\s*(?:(?:const|mut)\s+)?(?P<pointee>.+)$")


def element_tag(raw_type: str) -> str | None:
    """Return the element-type tag of a pointer type, or None.

    The tag is the last path segment of the pointee: `f64` for
    `*const f64`, `c_int` for `*mut ::std::os::raw::c_int`. Pointers to
    pointers have no tag.
    """
    match = _POINTER_RE.match(raw_type.strip())
    if match is None:
        return None
    pointee = match.group("pointee").strip()
    if pointee.startswith("*"):
        return None
    return pointee.rsplit("::", 1)[-1].strip() or None


def resolve_type(raw_type: str, role: str) -> tuple[str, bool, str | None]:
    """Map a raw foreign type to (host_type, is_buffer, element_type).

    Raises:
        TypeResolutionError: The raw type or its element tag is not in the
            fixed tables. There is no fallback type.
    """
    if raw_type.startswith("*"):
        tag = element_tag(raw_type)
        element = ELEMENT_TYPES.get(tag) if tag is not None else None
        if element is None:
            raise TypeResolutionError(
                "UNKNOWN_ELEMENT_TYPE",
                raw_type,
                f"No element type for pointer type {raw_type!r}",
                f"Known element tags: {', '.join(sorted(ELEMENT_TYPES))}.",
            )
        container = f"Vec<{element}>"
        if role == ROLE_INPUT:
            return f"&{container}", True, element
        return container, True, element

    host = SCALAR_TYPES.get(raw_type)
    if host is None:
        raise TypeResolutionError(
            "UNKNOWN_TYPE",
            raw_type,
            f"No host type for raw type {raw_type!r}",
            f"Known scalar types: {', '.join(sorted(SCALAR_TYPES))}.",
        )
    return host, False, None


def resolve_parameters(
    classified: Iterable[ClassifiedParameter], function_name: str = ""
) -> tuple[ResolvedParameter, ...]:
    resolved: list[ResolvedParameter] = []
    for item in classified:
        try:
            host_type, is_buffer, element = resolve_type(
                item.parameter.raw_type, item.role
            )
        except TypeResolutionError as err:
            raise TypeResolutionError(
                err.code,
                err.raw_type,
                f"{function_name}({item.parameter.name}): {err.message}",
                err.suggestion,
            ) from err
        resolved.append(
            ResolvedParameter(
                name=item.name,
                role=item.role,
                host_type=host_type,
                is_buffer=is_buffer,
                element_type=element,
                raw_name=item.parameter.name,
                raw_type=item.parameter.raw_type,
            )
        )
    return tuple(resolved)


# ===--- Shape validation ---=== #


def validate_signature(
    signature: Signature,
    inputs: tuple[ResolvedParameter, ...],
    outputs: tuple[ResolvedParameter, ...],
) -> None:
    """Reject declarations that do not fit the indicator calling convention.

    The wrapper sizes every output from the first input and reports the
    bookkeeping pair itself, so both must be present for the generated code
    to be correct.
    """

    def _fail(code: str, message: str) -> SynthesisError:
        return SynthesisError(code, f"{signature.name} (line {signature.line}): {message}")

    if not inputs:
        raise _fail("NO_INPUTS", "no input parameters to size outputs against")
    if not inputs[0].is_buffer:
        raise _fail(
            "FIRST_INPUT_NOT_BUFFER",
            f"first input {inputs[0].raw_name} is not a series",
        )
    if not outputs:
        raise _fail("NO_OUTPUTS", "no output series")
    for output in outputs:
        if not output.is_buffer:
            raise _fail("SCALAR_OUTPUT", f"output {output.raw_name} is not a series")

    param_names = {p.name for p in signature.parameters}
    missing = sorted(BOOKKEEPING_OUTPUTS - param_names)
    if missing:
        raise _fail("MISSING_BOOKKEEPING", f"missing {', '.join(missing)}")

    seen: set[str] = set(SYNTHESIZED_LOCALS)
    for param in (*inputs, *outputs):
        if not param.name:
            raise _fail("EMPTY_NAME", f"{param.raw_name} has nothing after its role prefix")
        if param.local_name in seen:
            raise _fail(
                "DUPLICATE_NAME",
                f"{param.raw_name} cleans to {param.local_name!r}, already in use",
            )
        seen.add(param.local_name)


# ===--- Function synthesis ---=== #

_HEADER_BORDER: str = "// x-------------------------------------------x //"


def format_file_header(signature: Signature) -> list[str]:
    """Return the comment block at the top of a generated wrapper file.

    Carries nothing run-specific (no paths, no timestamps) so that two runs
    over the same input produce identical bytes.
    """
    return [
        _HEADER_BORDER,
        "// | TA-Lib wrapper for Rust",
        "// | Generated by ta-bindings-gen, do not edit",
        f"// | Source: {signature.name}",
        _HEADER_BORDER,
    ]


def format_use_line(signature: Signature, inputs: tuple[ResolvedParameter, ...]) -> str:
    names = ["TA_Integer", "TA_Real", signature.name]
    if any(p.host_type == "TA_MAType" for p in inputs):
        names.append("TA_MAType")
    names.append("TA_RetCode")
    return f"use {WRAPPER_CRATE}::{{{', '.join(names)}}};"


def synthesize_function(
    signature: Signature,
    inputs: tuple[ResolvedParameter, ...],
    outputs: tuple[ResolvedParameter, ...],
) -> str:
    """Render the complete Rust wrapper for one declaration.

    Every output buffer is allocated with the first input's length, the
    foreign call fills it through a raw pointer, and `set_len` publishes the
    element count the library reported before the buffers are returned.

    Raises:
        SynthesisError: Propagated from validate_signature.
    """
    validate_signature(signature, inputs, outputs)

    first = inputs[0].local_name
    params = ", ".join(f"{p.local_name}: {p.host_type}" for p in inputs)
    returns = ", ".join([*(o.host_type for o in outputs), "TA_Integer"])

    lines: list[str] = list(format_file_header(signature))
    lines.append("")
    lines.append(format_use_line(signature, inputs))
    lines.append("")
    lines.append(f"pub fn {signature.module_name}({params}) -> ({returns}) {{")
    for output in outputs:
        lines.append(
            f"    let mut {output.local_name}: {output.host_type} = "
            f"Vec::with_capacity({first}.len());"
        )
    lines.append(f"    let mut {BEGIN_LOCAL}: TA_Integer = 0;")
    lines.append(f"    let mut {SIZE_LOCAL}: TA_Integer = 0;")
    lines.append("")
    lines.append("    unsafe {")
    lines.append(f"        let {RET_CODE_LOCAL} = {signature.name}(")
    lines.append("            0,")
    lines.append(f"            {first}.len() as i32 - 1,")
    for param in inputs:
        if param.is_buffer:
            lines.append(f"            {param.local_name}.as_ptr(),")
        else:
            lines.append(f"            {param.local_name},")
    lines.append(f"            &mut {BEGIN_LOCAL},")
    lines.append(f"            &mut {SIZE_LOCAL},")
    for output in outputs:
        lines.append(f"            {output.local_name}.as_mut_ptr(),")
    lines.append("        );")
    lines.append(f"        match {RET_CODE_LOCAL} {{")
    lines.append("            TA_RetCode::TA_SUCCESS => {")
    for output in outputs:
        lines.append(f"                {output.local_name}.set_len({SIZE_LOCAL} as usize);")
    lines.append("            }")
    lines.append(
        f'            _ => panic!("Could not compute indicator, err: {{:?}}", {RET_CODE_LOCAL}),'
    )
    lines.append("        }")
    lines.append("    }")
    lines.append("")
    returned = ", ".join([*(o.local_name for o in outputs), BEGIN_LOCAL])
    lines.append(f"    ({returned})")
    lines.append("}")
    return "\n".join(lines) + "\n"


def build_artifact(signature: Signature) -> FunctionArtifact:
    classified_inputs, classified_outputs = classify_parameters(signature)
    inputs = resolve_parameters(classified_inputs, signature.name)
    outputs = resolve_parameters(classified_outputs, signature.name)
    source = synthesize_function(signature, inputs, outputs)
    return FunctionArtifact(
        module_name=signature.module_name,
        filename=f"{signature.module_name}{MODULE_EXTENSION}",
        source=source,
        signature=signature,
    )


def build_artifacts(signatures: Iterable[Signature]) -> tuple[FunctionArtifact, ...]:
    """Synthesize every signature in memory, before anything touches disk.

    Two declarations that lower-case to the same module name resolve
    last-write-wins: the later source replaces the earlier one, which keeps
    its manifest position.
    """
    artifacts: dict[str, FunctionArtifact] = {}
    for signature in signatures:
        artifact = build_artifact(signature)
        previous = artifacts.get(artifact.module_name)
        if previous is not None:
            print(
                f"Warning: {signature.name} (line {signature.line}) replaces "
                f"{previous.signature.name} (line {previous.signature.line}) "
                f"in {artifact.filename}"
            )
        artifacts[artifact.module_name] = artifact
    return tuple(artifacts.values())


# ===--- Writer ---=== #


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing a single generated file.

    Attributes:
        filename: Filename written, e.g. "sma.rs" or "mod.rs".
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    filename: str
    path: Path
    line_count: int
    byte_count: int


@dataclass(frozen=True)
class PackageWriteResult:
    """Result of writing every artifact plus the manifest.

    files is ordered: artifacts first (in generation order), then mod.rs.
    """

    output_dir: Path
    files: tuple[FileWriteResult, ...]

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)


def assemble_manifest_source(module_names: Iterable[str]) -> str:
    lines = [f"pub mod {name};" for name in module_names]
    if not lines:
        raise ValueError("manifest must list at least one module")
    return "\n".join(lines) + "\n"


def _write_text(output_dir: Path, filename: str, content: str) -> FileWriteResult:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    file_path = output_dir / filename
    file_path.write_text(content, encoding="utf-8")
    resolved = file_path.resolve()
    return FileWriteResult(
        filename=filename,
        path=resolved,
        line_count=content.count("\n"),
        byte_count=len(content.encode("utf-8")),
    )


def write_artifact(output_dir: Path, artifact: FunctionArtifact) -> FileWriteResult:
    """Write one wrapper file. OSError propagates unwrapped."""
    return _write_text(output_dir, artifact.filename, artifact.source)


def write_manifest(output_dir: Path, module_names: Iterable[str]) -> FileWriteResult:
    return _write_text(output_dir, MANIFEST_FILENAME, assemble_manifest_source(module_names))


def write_package(
    output_dir: Path, artifacts: tuple[FunctionArtifact, ...]
) -> PackageWriteResult:
    """Write every artifact, then mod.rs last.

    Callers hand over fully synthesized artifacts, so a failure here can
    only come from the filesystem.
    """
    files: list[FileWriteResult] = []
    for artifact in artifacts:
        files.append(write_artifact(output_dir, artifact))
    files.append(write_manifest(output_dir, (a.module_name for a in artifacts)))
    return PackageWriteResult(output_dir=Path(output_dir), files=tuple(files))


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class GenerationSummary:
    """Immutable data for the post-generation console report.

    Attributes:
        input_label: Declaration file as given on the command line.
        output_dir: Output directory (verbatim from PackageWriteResult).
        declaration_count: Signatures extracted from the input.
        function_count: Artifacts written (after duplicate resolution).
        files: Ordered write results from PackageWriteResult.files.
    """

    input_label: str
    output_dir: str
    declaration_count: int
    function_count: int
    files: tuple[FileWriteResult, ...]

    @property
    def replaced_count(self) -> int:
        return self.declaration_count - self.function_count


def build_generation_summary(
    config: GenerateConfig,
    declaration_count: int,
    artifacts: tuple[FunctionArtifact, ...],
    write_result: PackageWriteResult,
) -> GenerationSummary:
    return GenerationSummary(
        input_label=str(config.input_path),
        output_dir=str(write_result.output_dir),
        declaration_count=declaration_count,
        function_count=len(artifacts),
        files=write_result.files,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary as a multi-line console block.

    The replaced annotation only appears when duplicate module names were
    collapsed. Line counts use thousands separators.
    """
    lines: list[str] = []
    lines.append("TA-Lib wrappers generated:")
    lines.append("")
    lines.append(f"  Input:      {summary.input_label}")
    lines.append(f"  Output:     {summary.output_dir}")
    lines.append("")
    lines.append(f"  Declarations: {summary.declaration_count:>6}")
    functions = f"  Functions:    {summary.function_count:>6}"
    if summary.replaced_count > 0:
        functions += f"  ({summary.replaced_count} replaced by later declarations)"
    lines.append(functions)
    lines.append("")
    lines.append("  Files written:")
    for file_result in summary.files:
        line_str = f"{file_result.line_count:>6,} lines"
        lines.append(f"    {file_result.filename:<28} {line_str}")

    total_lines = sum(f.line_count for f in summary.files)
    lines.append("")
    lines.append(f"  Total: {total_lines:,} lines across {len(summary.files)} files")
    lines.append("")

    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Pipeline ---=== #


def run_generate(config: GenerateConfig) -> PackageWriteResult:
    """Execute the whole pipeline: read -> extract -> synthesize -> write.

    Every artifact is synthesized before the first write, so extraction,
    resolution and synthesis errors leave the output directory untouched.

    Raises:
        OSError: Input not readable or filesystem write failure.
        UnicodeDecodeError: Input is not valid UTF-8.
        GenerationError: Extraction, type resolution or synthesis failure.
    """
    print(f"Parsing: {config.input_path}")
    text = config.input_path.read_text(encoding="utf-8")

    signatures = list(extract_signatures(text))
    print(f"  Extracted: {len(signatures)} declarations")

    artifacts = build_artifacts(signatures)
    print(f"  Synthesized: {len(artifacts)} functions")

    result = write_package(config.output_dir, artifacts)
    print(
        f"  Written: {len(result.files)} files, "
        f"{result.total_lines} lines to {result.output_dir}"
    )

    summary = build_generation_summary(config, len(signatures), artifacts, result)
    print_generation_summary(summary)
    return result


# ===--- Main generation ---=== #


def main(argv: list[str] | None = None):
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    try:
        run_generate(config)
    except GenerationError as err:
        print(f"Generation error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err
    except (OSError, UnicodeDecodeError) as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err
    except ValueError as err:
        print(f"Internal error: {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
