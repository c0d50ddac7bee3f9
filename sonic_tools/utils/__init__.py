"""
Utilities Package for Sonic Tools.

Modules:
    - ffmpeg_utils.py: Runs external commands and provides `FFmpegEngine`,
      the engine capability backed by the FFmpeg command-line tools.
    - engine_check.py: Verifies at startup that ffmpeg and ffprobe can run.
    - format_utils.py: Formats file sizes and archive entry names.
"""
