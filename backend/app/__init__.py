"""GridBalance service layer: settings, logging, schemas and the solve facade."""
