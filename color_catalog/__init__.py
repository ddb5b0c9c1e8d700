"""
color_catalog — Spray-paint catalog indexing and perceptual color matching.

Organizes a multi-brand color catalog into brand → series → color
lookups with color counts, and matches sampled colors (e.g. swatches
reported for a photo) to catalog colors by CIELAB distance.

Modules:
    catalog        CatalogIndex lookups and color counts
    colorspace     Hex ⇄ Lab conversion and Delta E distance
    engine         MatchEngine tying swatches, scope and matching together
    index_builder  JSON catalog loading, Lab precompute, FAISS Lab index
    matcher        Closest / top-k / palette matching
    models         Brand, Series, Color, ColorMatch and localized text
    scoring        Distance → similarity percentage
    swatches       Image color report → unique hex palette
"""

__version__ = "1.0.0"
