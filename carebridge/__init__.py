"""CareBridge document pipeline.

Uploads a photographed medical document to object storage, extracts its
text and structure with an OCR service, reassembles the lines into reading
order, and explains the content in plain language through a language model.
"""

__version__ = "1.0.0"
