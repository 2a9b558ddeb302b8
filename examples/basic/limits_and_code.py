"""Per-reply limits, length limits and code exclusion."""

import asyncio

from chatmath import build_math_segments


async def fake_render(expression: str, max_width_px: int) -> bytes:
    return f"png:{expression}".encode()


reply = """Use `$$x$$` for display math:

```latex
$$\\int_0^1 x\\,dx$$
```

$$a$$ $$b$$ $$c$$ $$\\text{this one is far too long}$$
"""

config = {
    "maxExpressionsPerReply": 2,
    "maxCharsPerExpression": 20,
    "delimiters": ["double-dollar"],
}
result = asyncio.run(build_math_segments(reply, config, render=fake_render))
print([segment.kind for segment in result.segments])
print([image.file_name for image in result.images])
