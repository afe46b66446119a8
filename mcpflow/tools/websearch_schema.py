WEB_SEARCH_SCHEMA = {
    "name": "web_search",
    "description": "Search the web for information",
    "parameters": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "Search query",
            },
            "limit": {
                "type": "integer",
                "minimum": 1,
                "default": 10,
                "description": "Number of results",
            },
        },
        "required": ["query"],
    },
}

FETCH_URL_SCHEMA = {
    "name": "fetch_url",
    "description": "Fetch content from a URL",
    "parameters": {
        "type": "object",
        "properties": {
            "url": {
                "type": "string",
                "description": "URL to fetch",
            },
        },
        "required": ["url"],
    },
}
