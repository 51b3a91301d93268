from setuptools import setup, find_packages

setup(
    name="socket-link",
    version="0.1.0",
    description="Newline-delimited JSON request/response over TCP and Unix sockets",
    author="Socket Link Team",
    packages=find_packages(include=["socket_link", "socket_link.*"]),
    install_requires=[
        "opentelemetry-api>=1.14.0",
        "opentelemetry-sdk>=1.14.0",
        "opentelemetry-exporter-otlp>=1.14.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov",
            "black",
            "isort",
            "pylint",
        ],
    },
    entry_points={
        "console_scripts": [
            "socket-link=socket_link.cli:main",
        ],
    },
    python_requires=">=3.10",
)
