"""HTTP surface for the memory cartridge selector."""
