#!/usr/bin/env python3
"""
Setup script to create .env file for the tabular data API.
Run this script and follow the prompts to configure your environment.
"""

from pathlib import Path


def create_env_file(env_path: Path = Path(".env")):
    """Interactive setup for .env file"""
    if env_path.exists():
        response = input(".env file already exists. Overwrite? (y/N): ")
        if response.lower() != 'y':
            print("Setup cancelled.")
            return

    print("=== Tabular Data API Environment Setup ===\n")

    # BigQuery
    print("1. BIGQUERY CONFIGURATION")
    print("   (The project that runs the query jobs)")
    project = input("   BigQuery Project ID: ").strip()
    access_token = input("   Access Token [leave empty to set later]: ").strip()
    max_results = input("   Max Results per query [1000]: ").strip() or "1000"

    # Entities
    print("\n2. ENTITY MAPPING")
    views_file = input("   Views File [config/views.yaml]: ").strip() or "config/views.yaml"
    allow_unmapped = input("   Treat unknown entities as table names? (Y/n): ").strip().lower() != "n"

    # CORS
    print("\n3. CORS CONFIGURATION")
    cors_origins = input("   Allowed Origins [http://localhost:3000]: ").strip() or "http://localhost:3000"

    env_content = f"""# BigQuery Configuration
BIGQUERY_PROJECT={project}
BIGQUERY_ACCESS_TOKEN={access_token}
BIGQUERY_MAX_RESULTS={max_results}
BIGQUERY_TIMEOUT_SECONDS=30

# Entity mapping
VIEWS_FILE={views_file}
ALLOW_UNMAPPED_ENTITIES={"true" if allow_unmapped else "false"}

# CORS
CORS_ALLOW_ORIGINS={cors_origins}

# Logging
LOG_LEVEL=INFO
"""

    with open(env_path, 'w') as f:
        f.write(env_content)

    print(f"\n✅ .env file created successfully!")
    print(f"📁 Location: {env_path.absolute()}")
    print("\n📋 Next steps:")
    print(f"   1. Map your entities in {views_file}")
    print("   2. Run the application: uvicorn dataapi.main:app --reload")


if __name__ == "__main__":
    create_env_file()
