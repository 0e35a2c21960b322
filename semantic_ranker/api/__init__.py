"""HTTP routes: health, model lifecycle, documents, ranking."""
