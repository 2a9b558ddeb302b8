"""Render formulas with the default renderer and save them as PNG files."""

import asyncio
from pathlib import Path

from chatmath import build_math_segments

out_dir = Path("equations")
out_dir.mkdir(exist_ok=True)

reply = "Euler: $$e^{i\\pi} + 1 = 0$$, Gauss: $$\\sum_{k=1}^{n} k = \\frac{n(n+1)}{2}$$"
result = asyncio.run(build_math_segments(reply, {"maxImageWidthPx": 800}))

for image in result.images:
    path = out_dir / image.file_name
    path.write_bytes(image.image)
    print(f"{path} <- {image.formula_text}")
