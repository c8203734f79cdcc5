"""Code Brief: daily frontend news digest curated by Gemini."""
