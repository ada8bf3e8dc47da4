import os

from setuptools import find_packages, setup


# Read README for long description
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), "README.md")
    if os.path.exists(readme_path):
        with open(readme_path, "r", encoding="utf-8") as f:
            return f.read()
    return "Single-Subject-Tracker for behavioral video analysis"


setup(
    name="single-subject-tracker",
    version="1.0.0",
    description="Single-subject video tracking with zone, calibration and movement analysis",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    # Package configuration
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    include_package_data=True,
    package_data={
        "subject_tracker": ["*.json"],
    },
    install_requires=[
        "numpy",
        "opencv-python",
        "scikit-learn",
        "PySide6",
    ],
    extras_require={
        # Concrete AI collaborators: YOLO object detection and TIMM embeddings
        "ai": [
            "ultralytics",
            "timm",
            "torch",
            "pillow",
        ],
        "test": [
            "pytest",
        ],
    },
    # Console scripts
    entry_points={
        "console_scripts": [
            "subject-tracker=subject_tracker.app.launcher:main",
        ],
    },
    # Metadata
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Scientific/Engineering :: Image Recognition",
    ],
    python_requires=">=3.11",
    keywords="animal tracking, computer vision, behavioral analysis, opencv",
)
