from __future__ import annotations

from pathlib import Path

import gen


def _make_file_result(filename: str, line_count: int) -> gen.FileWriteResult:
    return gen.FileWriteResult(
        filename=filename,
        path=Path("/tmp/out") / filename,
        line_count=line_count,
        byte_count=line_count * 10,
    )


def _make_summary(
    *,
    declaration_count: int = 2,
    function_count: int = 2,
    files: tuple[gen.FileWriteResult, ...] | None = None,
) -> gen.GenerationSummary:
    if files is None:
        files = (
            _make_file_result("sma.rs", 38),
            _make_file_result("ema.rs", 38),
            _make_file_result("mod.rs", 2),
        )
    return gen.GenerationSummary(
        input_label="ta_func.rs",
        output_dir="/tmp/out",
        declaration_count=declaration_count,
        function_count=function_count,
        files=files,
    )


def test_build_generation_summary_copies_pipeline_outputs() -> None:
    config = gen.GenerateConfig(input_path=Path("ta_func.rs"), output_dir=Path("out"))
    artifacts = (
        gen.FunctionArtifact("sma", "sma.rs", "", gen.Signature("TA_SMA", ())),
    )
    write_result = gen.PackageWriteResult(
        output_dir=Path("out"),
        files=(_make_file_result("sma.rs", 38), _make_file_result("mod.rs", 1)),
    )

    summary = gen.build_generation_summary(config, 3, artifacts, write_result)

    assert summary.input_label == "ta_func.rs"
    assert summary.output_dir == "out"
    assert summary.declaration_count == 3
    assert summary.function_count == 1
    assert summary.replaced_count == 2
    assert summary.files == write_result.files


def test_format_generation_summary_lists_files_and_totals() -> None:
    text = gen.format_generation_summary(_make_summary())
    lines = text.splitlines()

    assert lines[0] == "TA-Lib wrappers generated:"
    assert "  Input:      ta_func.rs" in lines
    assert "  Output:     /tmp/out" in lines
    assert "  Declarations:      2" in lines
    assert "  Functions:         2" in lines
    assert any(line.startswith("    sma.rs") and line.endswith("38 lines") for line in lines)
    assert "  Total: 78 lines across 3 files" in lines
    assert text.endswith("\n")
    assert not text.endswith("\n\n")


def test_format_generation_summary_annotates_replaced_declarations() -> None:
    text = gen.format_generation_summary(
        _make_summary(declaration_count=3, function_count=2)
    )

    assert "  Functions:         2  (1 replaced by later declarations)" in text


def test_format_generation_summary_omits_annotation_without_duplicates() -> None:
    text = gen.format_generation_summary(_make_summary())

    assert "replaced" not in text


def test_format_generation_summary_uses_thousands_separators() -> None:
    text = gen.format_generation_summary(
        _make_summary(files=(_make_file_result("mod.rs", 1234),))
    )

    assert "1,234 lines" in text
    assert "  Total: 1,234 lines across 1 files" in text


def test_print_generation_summary_writes_formatted_block(capsys) -> None:
    summary = _make_summary()

    gen.print_generation_summary(summary)

    assert capsys.readouterr().out == gen.format_generation_summary(summary)
