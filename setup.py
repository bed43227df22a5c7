from setuptools import setup

setup(
    name="pvc-catalogd",
    version="0.1.0",
    packages=["pvccatalogd"],
    install_requires=[
        "Flask",
        "Flask-RESTful",
        "Flask-SQLAlchemy",
        "Flask-Migrate",
        "SQLAlchemy",
        "psycopg2-binary",
        "PyYAML",
        "gunicorn",
        "Werkzeug",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "pvccatalogd = pvccatalogd.Daemon:entrypoint",
        ],
    },
)
