"""
Services Package for Sonic Tools.

This package contains the service layer: classes that run the engine and the
operation strategies built on top of them.

- **Encoding Service (`EncodingService`):**
  Builds FFmpeg argument lists for encodes, cuts, concatenation and custom
  invocations, runs them, and hands back the output scratch file.

- **Probe Service (`ProbeService`):**
  Reads the bit rate and duration that the compress strategies depend on.

- **Operation Strategies (`AudioOperation` and subclasses):**
  `audio_encoder.py` holds the single-pass encodes (compress, convert, boost,
  normalize), `timeline_editor.py` trim and merge, and `metadata_writer.py`
  tagging.

- **Logging Service (`configure_logging`, `ErrorLog`):**
  Sets up loguru sinks and appends failed engine invocations to `error.txt`.

Nothing is imported here, so importing a single service does not pull in the
rest of the layer.
"""
