"""Component declarations.

Each module declares components at module level with ``component()`` and
``meta()``; every ``TaskSpec`` found here is registered, in definition order.
Dependencies refer to other tasks by name and may cross modules.
"""

from ..graph import meta

everything = meta("all", deps=["mesa", "piglit"])
