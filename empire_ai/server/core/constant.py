PROJECT_NAME = "Empire-AI A2A Server"
API_PREFIX = "/api"
AGENTS_PREFIX = f"{API_PREFIX}/agents"
