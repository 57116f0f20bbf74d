"""SQL lexer, syntax nodes, expression parsing and statement parser."""