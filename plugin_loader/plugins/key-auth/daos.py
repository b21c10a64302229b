DAOS = [
    {
        "name": "keyauth_credentials",
        "primary_key": ["id"],
        "endpoint_key": "key",
        "cache_key": ["key"],
        "ttl": True,
        "admin_api_name": "key-auths",
        "fields": [
            {"id": {"type": "string", "uuid": True, "auto": True}},
            {"created_at": {"type": "number", "integer": True, "timestamp": True, "auto": True}},
            {
                "consumer": {
                    "type": "foreign",
                    "reference": "consumers",
                    "required": True,
                    "on_delete": "cascade",
                }
            },
            {"key": {"type": "string", "required": True, "unique": True, "auto": True}},
            {"tags": {"type": "array", "elements": {"type": "string"}}},
        ],
    },
]
