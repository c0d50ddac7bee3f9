"""
Configuration Package for Sonic Tools.

This package centralizes the static configuration settings for the service.
Keeping configuration apart from the operation logic makes it possible to tune
bitrate floors, loudness targets or engine paths without touching the code that
uses them.

This package includes settings for:
- Common service settings like logging formats, scratch file naming, upload
  limits and the response bundle name.
- User-overridable paths and limits for the external FFmpeg engine, loaded
  from `config.user.yaml`.
- Audio parameters for compression tiers, loudness normalization, and the
  intermediate format used by trim and merge.
"""
