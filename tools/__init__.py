"""Command-line tools for inspecting a RoyaltyAutoClaim storage region."""
