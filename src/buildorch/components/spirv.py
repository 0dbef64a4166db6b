"""SPIR-V toolchain used by the shader compilers."""

from ..graph import component
from ..sources import git


spirv_headers = component(
    "spirv-headers",
    path="khronos/SPIRV-Headers",
    provider=git("https://github.com/KhronosGroup/SPIRV-Headers.git"),
)

spirv_tools = component(
    "spirv-tools",
    path="khronos/SPIRV-Tools",
    provider=git("https://github.com/KhronosGroup/SPIRV-Tools.git"),
    deps=["spirv-headers"],
    configure_args=["-DSPIRV_SKIP_TESTS=ON"],
)

glslang = component(
    "glslang",
    path="khronos/glslang",
    provider=git("https://github.com/KhronosGroup/glslang.git"),
    deps=["spirv-tools"],
    configure_args=["-DALLOW_EXTERNAL_SPIRV_TOOLS=ON", "-DENABLE_OPT=ON"],
)
