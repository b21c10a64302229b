# Old-format schema: no "name", options described as a loose field map.

SCHEMA = {
    "no_consumer": False,
    "fields": {
        "second": {"type": "number"},
        "minute": {"type": "number"},
        "hour": {"type": "number"},
        "day": {"type": "number"},
        "limit_by": {
            "type": "string",
            "enum": ["consumer", "credential", "ip"],
            "default": "consumer",
        },
        "policy": {
            "type": "string",
            "enum": ["local", "cluster", "redis"],
            "default": "cluster",
        },
        "fault_tolerant": {"type": "boolean", "default": True},
        "hide_client_headers": {"type": "boolean", "default": False},
        "redis": {
            "type": "table",
            "schema": {
                "fields": {
                    "host": {"type": "string"},
                    "port": {"type": "number", "default": 6379},
                    "timeout": {"type": "number", "default": 2000},
                    "database": {"type": "number", "default": 0},
                },
            },
        },
        "header_overrides": {
            "type": "table",
            "schema": {
                "flexible": True,
                "fields": {
                    "name": {"type": "string", "required": True},
                },
            },
        },
        "sync_rate": {"type": "number", "immutable": True, "default": -1},
    },
}
