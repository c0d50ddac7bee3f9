"""
This package contains the core domain models of Sonic Tools.

The domain layer describes audio requests and results independently of the
CLI and of the FFmpeg process handling, so it can be tested without either.

Modules:
    exceptions.py: The exception hierarchy rooted at `SonicToolsException`.
    media.py: `MediaBlob`, the per-operation request types and
              `OperationResult`.
    plans.py: Encode and tagging plans per output format, and their lookup.
    temp_models.py: `ScratchWorkspace` and `ScratchFile`, which give the
                    engine files to read and write and delete them afterwards.
"""
