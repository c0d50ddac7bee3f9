"""
Sonic Tools: audio file manipulation on top of FFmpeg.

The package is split into layers:

- `config`: constants and the optional `config.user.yaml` overrides.
- `domain`: requests, results, encode plans, exceptions and the scratch
  workspace that bridges in-memory payloads and the engine's files.
- `services`: the engine invoker, the probe service and one strategy per
  operation (compress, convert, boost, normalize, trim, merge, metadata).
- `pipeline`: `AudioToolkit`, which wires everything together and packs
  multi-file results into a zip bundle.
- `utils`: process execution, startup checks and formatting helpers.

Typical use:

    from sonic_tools.pipeline.batch_pipeline import AudioToolkit
    from sonic_tools.domain.media import ConvertRequest

    response = AudioToolkit().convert(
        ConvertRequest(file_data=[data], filenames=["song.wav"], output_format="mp3")
    )
"""

__version__ = "0.1.0"
