from ..graph import component
from ..sources import git


libdrm = component(
    "libdrm",
    path="drm",
    provider=git("https://gitlab.freedesktop.org/mesa/drm.git"),
    build_system="meson",
    configure_args=["-Dtests=false"],
)

wayland = component(
    "wayland",
    path="wayland/wayland",
    provider=git("https://gitlab.freedesktop.org/wayland/wayland.git"),
    build_system="meson",
    configure_args=["-Ddocumentation=false"],
)

wayland_protocols = component(
    "wayland-protocols",
    path="wayland/wayland-protocols",
    provider=git("https://gitlab.freedesktop.org/wayland/wayland-protocols.git"),
    deps=["wayland"],
    build_system="meson",
)
