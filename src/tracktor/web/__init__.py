"""HTTP surface for renderers: import, chart queries, editing and export."""
