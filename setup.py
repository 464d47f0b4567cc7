from setuptools import setup, find_packages

setup(
    name="stripe-emulator",
    version="0.1.0",
    description="In-memory, multi-tenant Stripe API emulator with structural fidelity assertions",
    author="Fluxtopus Team",
    packages=find_packages(include=["stripe_emulator", "stripe_emulator.*"]),
    install_requires=[
        "stripe>=8.0.0",
        "structlog>=23.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    python_requires=">=3.10",
)
