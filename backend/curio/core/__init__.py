# Pure helpers with no I/O: URL metadata and slug derivation
