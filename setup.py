import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="mcdenoise",
    version="0.1.0",
    author="mcdenoise developers",
    description="Matrix denoising on the Birkhoff polytope and the Stiefel manifold",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=("tests", "tests.*", "examples")),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
    install_requires=["torch", "numpy"],
    extras_require={"test": ["pytest"]},
)
