"""
Uploads: product images (``/api/upload``), the media library
(``/api/media``) and public serving of stored files with byte ranges.
"""
