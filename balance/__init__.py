"""Balance validation: scripted policies played over many seeded games."""
