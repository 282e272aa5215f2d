"""Movie Club: rotating movie picks with sealed group ratings."""
