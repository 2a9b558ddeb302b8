"""Benchmark the math tokenizer on chat-sized messages.

Run with:
    uv run python benchmarks/benchmark_tokenize.py
"""

import time

from chatmath import resolve_math_image_config, tokenize


def make_message(formulas: int, code_blocks: int) -> str:
    """Build a message mixing prose, formulas, inline code and fences."""
    parts = []
    for i in range(formulas):
        parts.append(f"Step {i}: we get $$x_{i}^2 + y_{i}$$ and \\[\\frac{{{i}}}{{2}}\\].\n")
        if i < code_blocks:
            parts.append(f"```python\nprint('$$not math {i}$$')\n```\n")
            parts.append(f"Inline `\\[code {i}\\]` stays literal.\n")
    return "".join(parts)


def benchmark(text: str, iterations: int = 200) -> float:
    """Return mean seconds per tokenize() call."""
    config = resolve_math_image_config()

    # Warmup
    for _ in range(10):
        tokenize(text, config)

    start = time.perf_counter()
    for _ in range(iterations):
        tokenize(text, config)
    return (time.perf_counter() - start) / iterations


def main() -> None:
    print(f"{'formulas':>9} {'fences':>7} {'chars':>8} {'mean (us)':>10}")
    for formulas, code_blocks in [(1, 0), (8, 2), (50, 10), (200, 50)]:
        text = make_message(formulas, code_blocks)
        mean = benchmark(text)
        print(f"{formulas:>9} {code_blocks:>7} {len(text):>8} {mean * 1e6:>10.1f}")


if __name__ == "__main__":
    main()
