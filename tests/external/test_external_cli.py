from __future__ import annotations

from pathlib import Path
import subprocess
import sys


EXPECTED_FILES = {
    "sma.rs",
    "ma.rs",
    "macd.rs",
    "cdl3blackcrows.rs",
    "plus_di.rs",
    "ht_dcperiod.rs",
    "mod.rs",
}


def _tool_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _fixture_declarations() -> Path:
    return _tool_root() / "tests" / "fixtures" / "ta_func_minimal.rs"


def _run(args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    run_cwd = _tool_root() if cwd is None else cwd
    return subprocess.run(
        [sys.executable, str(_tool_root() / "gen.py"), *args],
        cwd=run_cwd,
        capture_output=True,
        text=True,
        check=False,
    )


def test_t_01_generate_writes_expected_surface(tmp_path: Path) -> None:
    output_dir = tmp_path / "generated"

    result = _run(
        ["--input", str(_fixture_declarations()), "--output", str(output_dir)]
    )

    assert result.returncode == 0, result.stdout + result.stderr
    assert "TA-Lib wrappers generated:" in result.stdout
    assert "Total:" in result.stdout
    assert {p.name for p in output_dir.glob("*.rs")} == EXPECTED_FILES
    assert (output_dir / "mod.rs").read_text(encoding="utf-8").splitlines() == [
        "pub mod sma;",
        "pub mod ma;",
        "pub mod macd;",
        "pub mod cdl3blackcrows;",
        "pub mod plus_di;",
        "pub mod ht_dcperiod;",
    ]


def test_t_02_short_flags_from_another_cwd(tmp_path: Path) -> None:
    output_dir = tmp_path / "generated"

    result = _run(
        ["-i", str(_fixture_declarations()), "-o", str(output_dir)], cwd=tmp_path
    )

    assert result.returncode == 0, result.stdout + result.stderr
    assert (output_dir / "sma.rs").exists()


def test_t_03_missing_output_flag_prints_usage_and_fails(tmp_path: Path) -> None:
    result = _run(["--input", str(_fixture_declarations())])

    assert result.returncode == 2
    assert "usage:" in result.stderr
    assert "--output" in result.stderr


def test_t_04_unknown_type_fails_without_writing(tmp_path: Path) -> None:
    input_path = tmp_path / "ta_func.rs"
    input_path.write_text(
        "pub fn TA_OBV(inReal: *const f64, inVolume: *const u64, "
        "outBegIdx: *mut ::std::os::raw::c_int, "
        "outNBElement: *mut ::std::os::raw::c_int, outReal: *mut f64)\n",
        encoding="utf-8",
    )
    output_dir = tmp_path / "generated"

    result = _run(["-i", str(input_path), "-o", str(output_dir)])

    assert result.returncode == 1
    assert "Generation error [UNKNOWN_ELEMENT_TYPE]:" in result.stdout
    assert "'*const u64'" in result.stdout
    assert not output_dir.exists()


def test_t_05_repeat_runs_are_byte_identical(tmp_path: Path) -> None:
    first = tmp_path / "first"
    second = tmp_path / "second"

    assert _run(["-i", str(_fixture_declarations()), "-o", str(first)]).returncode == 0
    assert _run(["-i", str(_fixture_declarations()), "-o", str(second)]).returncode == 0

    for name in EXPECTED_FILES:
        assert (first / name).read_bytes() == (second / name).read_bytes()
