# In src/cargo_temp/benchmarking.py
from pathlib import Path
from typing import Optional, Union

from .structured_logging import log_benchmark_generated

DEFAULT_BENCH_NAME = "benchmark"

BENCH_TEMPLATE = """use criterion::{black_box, criterion_group, criterion_main, Criterion};

fn criterion_benchmark(_c: &mut Criterion) {
\tprintln!("Hello, world!");
}

criterion_group!(
\tbenches,
\tcriterion_benchmark
);
criterion_main!(benches);
"""


def format_benchmarking(name: str) -> str:
    """Manifest sections that register a criterion benchmark called `name`."""
    return f"""
[dev-dependencies]
criterion = "*"

[profile.release]
debug = true

[[bench]]
name = "{name}"
harness = false"""


def generate_benchmarking(
    project_dir: Union[str, Path], name: Optional[str] = None
) -> Path:
    """
    Set up a criterion benchmark in the project.

    Appends the benchmark sections to `Cargo.toml` and writes
    `benches/<name>.rs`.

    Returns:
        Path: The generated benchmark source file
    """
    name = name or DEFAULT_BENCH_NAME
    project_dir = Path(project_dir)

    with open(project_dir / "Cargo.toml", "a", encoding="utf-8") as manifest:
        manifest.write(format_benchmarking(name) + "\n")

    bench_dir = project_dir / "benches"
    bench_dir.mkdir(parents=True, exist_ok=True)
    bench_file = bench_dir / f"{name}.rs"
    bench_file.write_text(BENCH_TEMPLATE, encoding="utf-8")

    log_benchmark_generated(str(bench_file))
    return bench_file
