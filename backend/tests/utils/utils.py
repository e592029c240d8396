TEST_TOKEN = "test-gateway-token"


def auth_header(token: str = TEST_TOKEN, scheme: str = "Basic") -> dict[str, str]:
    return {"Authorization": f"{scheme} {token}"}
