"""photostrip — photo-strip compositing and animated export.

Composite captured photos (or short looping clips) into a decorated
strip described by a YAML frame mapping, and export it as a PNG or a
looping GIF/MP4.
"""
