import mbatcher

requests = [
    # Simple URL GET request, keyed by its URL
    "https://httpbin.org/anything",
    # Custom request
    {
        "key": "create",
        "url": "https://httpbin.org/post",
        "method": "POST",
        "body": "name=Test",
        "headers": ["Content-Type: application/x-www-form-urlencoded", "X-Custom: value"],
        "options": {"timeout": 10},
    },
]

results = mbatcher.run(requests)

for key, result in results.items():
    print(f"{key}: {result.status_code} {result.error or ''} {result.content[:80]!r}")
