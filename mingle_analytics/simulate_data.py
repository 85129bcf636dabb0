import requests
import uuid
import random
import time

# Configuration
ANALYTICS_ENDPOINT = "http://localhost:8001/api"
BASE_URL = "https://topicmingle.com"

# Simulation Parameters
NUM_USERS = 20
EVENTS_PER_USER = 10

# Helper Lists
URL_PATHS = [
    "/",
    "/category/technology",
    "/category/finance",
    "/about",
]
BLOGS = [(f"blog-{i}", f"Blog Post {i}") for i in range(1, 6)]
URL_PATHS.extend([f"/blog/{slug}" for slug, _ in BLOGS])

RELATED_SEARCHES = [
    "Remote Jobs",
    "Online Degrees",
    "Best Credit Cards",
    "Cloud Hosting",
]

SOURCES = ["google", "facebook", "bing", None]
COUNTRIES = ["US", "GB", "IN", "DE", None]

USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1",
]


def post(path, payload):
    try:
        requests.post(f"{ANALYTICS_ENDPOINT}{path}", json=payload, timeout=5)
    except requests.RequestException as e:
        print(f"Error sending {path}: {e}")


def random_click():
    """Picks one of the clickable elements the site renders."""
    roll = random.random()
    if roll < 0.4:
        i = random.randrange(len(RELATED_SEARCHES))
        return f"related-search-{i}", RELATED_SEARCHES[i]
    if roll < 0.6:
        # visit-now buttons are labelled with their search term
        i = random.randrange(len(RELATED_SEARCHES))
        return f"visit-now-{i}", RELATED_SEARCHES[i]
    if roll < 0.85:
        slug, title = random.choice(BLOGS)
        return f"blog-card-{slug}", title
    return random.choice([("nav-home", "Home"), ("subscribe", "Subscribe"), ("footer-about", "About")])


def simulate_user_journey():
    session_id = str(uuid.uuid4())
    country = random.choice(COUNTRIES)
    source = random.choice(SOURCES)
    print(f"Simulating Session: {session_id[:8]}...")

    post("/sessions", {
        "session_id": session_id,
        "ip_address": f"203.0.113.{random.randint(1, 254)}",
        "user_agent": random.choice(USER_AGENTS),
        "country": country,
        "source": source,
    })

    for _ in range(random.randint(3, EVENTS_PER_USER)):
        path = random.choice(URL_PATHS)
        url = BASE_URL + path

        if random.random() < 0.5:
            blog_id = path.split("/")[2] if path.startswith("/blog/") else None
            post("/page-views", {
                "session_id": session_id,
                "page_url": url,
                "blog_id": blog_id,
                "country": country,
                "source": source,
            })
        else:
            button_id, button_label = random_click()
            post("/clicks", {
                "session_id": session_id,
                "button_id": button_id,
                "button_label": button_label,
                "page_url": url,
                "country": country,
                "source": source,
            })

        # Small delay to not overwhelm connection
        time.sleep(0.05)


if __name__ == "__main__":
    print(f"Starting simulation of {NUM_USERS} users...")
    start_time = time.time()

    for i in range(NUM_USERS):
        simulate_user_journey()

    print(f"Simulation complete in {time.time() - start_time:.2f}s")
