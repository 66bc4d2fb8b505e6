"""AM language core: errors, configuration, IR and the lex/parse/eval pipeline."""
