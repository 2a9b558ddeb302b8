"""Split a chat reply into text and rendered formula images."""

import asyncio

from chatmath import build_math_segments

reply = "The area of a circle is $$\\pi r^2$$ and its circumference \\[2 \\pi r\\]."

result = asyncio.run(build_math_segments(reply))
for segment in result.segments:
    if segment.kind == "math-image":
        print(f"[attach {segment.file_name}: {len(segment.image)} bytes for {segment.formula_text}]")
    else:
        print(repr(segment.text))
