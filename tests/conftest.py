pytest_plugins = [
    "tests.fixtures.session_fixtures",
    "tests.fixtures.message_fixtures",
    "tests.fixtures.notification_fixtures",
    "tests.fixtures.api_fixtures",
]
