"""Collaborators around the mask engine.

Modules:
    - image_io: base image decoding, letterboxed rendering, PNG export
    - local_backend: ImageStore / SubmissionSink contracts and a local
      filesystem mock of the inpainting service

Nothing here mutates the mask buffer.
"""
