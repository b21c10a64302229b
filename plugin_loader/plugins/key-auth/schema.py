SCHEMA = {
    "name": "key-auth",
    "fields": [
        {"consumer": {"type": "foreign", "reference": "consumers", "eq_null": True}},
        {
            "config": {
                "type": "record",
                "fields": [
                    {
                        "key_names": {
                            "type": "array",
                            "required": True,
                            "elements": {"type": "string"},
                            "default": ["apikey"],
                        }
                    },
                    {"hide_credentials": {"type": "boolean", "required": True, "default": False}},
                    {"anonymous": {"type": "string"}},
                    {"key_in_header": {"type": "boolean", "required": True, "default": True}},
                    {"key_in_query": {"type": "boolean", "required": True, "default": True}},
                    {"key_in_body": {"type": "boolean", "required": True, "default": False}},
                    {"run_on_preflight": {"type": "boolean", "required": True, "default": True}},
                ],
            }
        },
    ],
}
