"""
Django settings for running the Periodman test suite.
"""

SECRET_KEY = 'periodman-tests'

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'periodman',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

USE_TZ = True
TIME_ZONE = 'UTC'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

PERIODMAN = {
    'METAFIELD_BACKEND': 'periodman.adapters.memory.InMemoryMetafieldBackend',
}
