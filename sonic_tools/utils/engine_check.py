"""
This module provides the Modules class, which verifies at startup that the
external tools the service depends on (ffmpeg and ffprobe) can be executed.
"""
from loguru import logger

from ..domain.exceptions import EngineExecutionException
from .ffmpeg_utils import executable_path, run_cmd


class Modules:
    """
    Startup checks for the external FFmpeg tools.

    Executables are looked up in the configured `ffmpeg_dir` first and in the
    system PATH otherwise, the same way the engine resolves them.
    """

    TOOLS = ("ffmpeg", "ffprobe")

    @staticmethod
    def verify_tool(name: str) -> bool:
        """
        Runs `<tool> -version` and logs the first line of its output.

        Returns:
            True if the tool ran and exited successfully.
        """
        cmd = executable_path(name)
        try:
            result = run_cmd([cmd, "-version"], timeout=30)
        except EngineExecutionException as e:
            logger.error(
                f"{name} could not be run: {e}\n"
                "Install FFmpeg and add it to PATH, or set `paths.ffmpeg_dir` in 'config.user.yaml'."
            )
            return False

        if result.returncode != 0:
            logger.error(f"{name} -version failed (return code {result.returncode}):\n{result.stderr}")
            return False

        first_line = result.stdout.decode("utf-8", errors="replace").splitlines()[:1]
        logger.info(f"{name} version check successful: {first_line[0] if first_line else '(no output)'}")
        return True

    @staticmethod
    def run_all() -> bool:
        """Verifies every tool. Returns True only if all of them are usable."""
        results = [Modules.verify_tool(name) for name in Modules.TOOLS]
        return all(results)
