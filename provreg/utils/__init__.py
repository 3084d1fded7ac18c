"""Pure helpers shared by the registry components."""
