from ..graph import component
from ..sources import git


mesa = component(
    "mesa",
    path="mesa/mesa",
    provider=git("https://gitlab.freedesktop.org/mesa/mesa.git"),
    deps=["libdrm", "wayland-protocols", "glslang"],
    build_system="meson",
    configure_args=["-Dbuildtype=debugoptimized"],
)

piglit = component(
    "piglit",
    path="mesa/piglit",
    provider=git("https://gitlab.freedesktop.org/mesa/piglit.git"),
    deps=["mesa"],
)
