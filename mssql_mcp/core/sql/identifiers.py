def quote(name: str) -> str:
    """
    Wrap a database name in brackets and double any closing bracket inside it.

    Only used for the database switch issued by the connection gateway.
    Never use it to build or clean up caller SQL.

    Example:
        quote("My]Db")  # "[My]]Db]"
    """
    return "[" + name.replace("]", "]]") + "]"
