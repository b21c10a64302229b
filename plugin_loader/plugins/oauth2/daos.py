# Old hash syntax: the loader orders these by their foreign keys
# (tokens and codes need credentials first).

_ID = {"type": "string", "uuid": True, "auto": True}
_CREATED_AT = {"type": "number", "integer": True, "timestamp": True, "auto": True}

DAOS = {
    "oauth2_tokens": {
        "name": "oauth2_tokens",
        "primary_key": ["id"],
        "endpoint_key": "access_token",
        "cache_key": ["access_token"],
        "fields": [
            {"id": dict(_ID)},
            {"created_at": dict(_CREATED_AT)},
            {
                "credential": {
                    "type": "foreign",
                    "reference": "oauth2_credentials",
                    "required": True,
                    "on_delete": "cascade",
                }
            },
            {"service": {"type": "foreign", "reference": "services", "on_delete": "cascade"}},
            {"access_token": {"type": "string", "unique": True, "auto": True}},
            {"refresh_token": {"type": "string", "unique": True}},
            {"token_type": {"type": "string", "required": True, "one_of": ["bearer"], "default": "bearer"}},
            {"expires_in": {"type": "number", "integer": True, "required": True}},
            {"scope": {"type": "string"}},
        ],
    },
    "oauth2_authorization_codes": {
        "name": "oauth2_authorization_codes",
        "primary_key": ["id"],
        "cache_key": ["code"],
        "ttl": True,
        "fields": [
            {"id": dict(_ID)},
            {"created_at": dict(_CREATED_AT)},
            {"service": {"type": "foreign", "reference": "services", "on_delete": "cascade"}},
            {
                "credential": {
                    "type": "foreign",
                    "reference": "oauth2_credentials",
                    "required": True,
                    "on_delete": "cascade",
                }
            },
            {"code": {"type": "string", "required": True, "unique": True, "auto": True}},
            {"authenticated_userid": {"type": "string"}},
            {"scope": {"type": "string"}},
        ],
    },
    "oauth2_credentials": {
        "name": "oauth2_credentials",
        "primary_key": ["id"],
        "endpoint_key": "client_id",
        "cache_key": ["client_id"],
        "admin_api_name": "oauth2",
        "fields": [
            {"id": dict(_ID)},
            {"created_at": dict(_CREATED_AT)},
            {
                "consumer": {
                    "type": "foreign",
                    "reference": "consumers",
                    "required": True,
                    "on_delete": "cascade",
                }
            },
            {"name": {"type": "string", "required": True}},
            {"client_id": {"type": "string", "required": True, "unique": True, "auto": True}},
            {"client_secret": {"type": "string", "required": True, "auto": True}},
            {"redirect_uris": {"type": "array", "elements": {"type": "string"}}},
        ],
    },
}
