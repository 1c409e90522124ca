import sys
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import gen  # noqa: E402

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"

SMA_DECLARATION = """
extern "C" {
    pub fn TA_SMA(
        startIdx: ::std::os::raw::c_int,
        endIdx: ::std::os::raw::c_int,
        inReal: *const f64,
        optInTimePeriod: ::std::os::raw::c_int,
        outBegIdx: *mut ::std::os::raw::c_int,
        outNBElement: *mut ::std::os::raw::c_int,
        outReal: *mut f64,
    ) -> TA_RetCode;
}
"""

SMA_PARAMS: tuple[tuple[str, str], ...] = (
    ("startIdx", "::std::os::raw::c_int"),
    ("endIdx", "::std::os::raw::c_int"),
    ("inReal", "*const f64"),
    ("optInTimePeriod", "::std::os::raw::c_int"),
    ("outBegIdx", "*mut ::std::os::raw::c_int"),
    ("outNBElement", "*mut ::std::os::raw::c_int"),
    ("outReal", "*mut f64"),
)


@pytest.fixture
def sma_declaration() -> str:
    return SMA_DECLARATION


@pytest.fixture
def fixture_declarations() -> Path:
    return FIXTURES_DIR / "ta_func_minimal.rs"


@pytest.fixture
def make_signature() -> Callable[..., gen.Signature]:
    def _make_signature(
        name: str = "TA_SMA",
        params: tuple[tuple[str, str], ...] = SMA_PARAMS,
        line: int = 1,
    ) -> gen.Signature:
        return gen.Signature(
            name=name,
            parameters=tuple(gen.Parameter(n, t) for n, t in params),
            line=line,
        )

    return _make_signature


@pytest.fixture
def make_resolved() -> Callable[..., gen.ResolvedParameter]:
    def _make_resolved(
        raw_name: str,
        raw_type: str,
    ) -> gen.ResolvedParameter:
        role = gen.classify_parameter(raw_name)
        host_type, is_buffer, element = gen.resolve_type(raw_type, role)
        return gen.ResolvedParameter(
            name=gen.clean_name(raw_name),
            role=role,
            host_type=host_type,
            is_buffer=is_buffer,
            element_type=element,
            raw_name=raw_name,
            raw_type=raw_type,
        )

    return _make_resolved


@pytest.fixture
def write_declarations(tmp_path: Path) -> Callable[[str], Path]:
    def _write_declarations(text: str) -> Path:
        path = tmp_path / "ta_func.rs"
        path.write_text(text, encoding="utf-8")
        return path

    return _write_declarations
