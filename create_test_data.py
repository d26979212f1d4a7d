#!/usr/bin/env python3
"""
Create a synthetic student cohort as an Excel file for the bulk upload
endpoint (/upload_students).
"""
import random

import pandas as pd
from faker import Faker

from grading import classify_status, student_gpa


def create_cohort_data(count: int = 60, seed=None, output_file: str = 'tenacity_cohort_test_data.xlsx'):
    """Create realistic test data with a spread of Safe, Average and At-Risk students."""
    fake = Faker('en_IN')  # Indian locale for better names
    rng = random.Random(seed)
    if seed is not None:
        fake.seed_instance(seed)

    students_data = []
    for i in range(count):
        # Roughly a third of the cohort falls below the attendance threshold
        if rng.random() < 0.3:
            attendance = rng.randint(45, 74)
        else:
            attendance = rng.randint(75, 100)
        marks = round(min(100, max(0, rng.gauss(68, 15))), 1)

        students_data.append({
            'ID': f"T{str(i + 1).zfill(4)}",
            'Name': fake.name(),
            'Attendance': attendance,
            'Marks': marks,
        })

    df = pd.DataFrame(students_data)
    df.to_excel(output_file, index=False, engine='openpyxl')
    return output_file, df


def describe_cohort(df: pd.DataFrame) -> dict:
    statuses = [
        classify_status(row['Attendance'], student_gpa(row['Marks']))
        for _, row in df.iterrows()
    ]
    return pd.Series(statuses).value_counts().to_dict()


if __name__ == "__main__":
    output_file, df = create_cohort_data()
    print(f"Test data created: '{output_file}'")
    print(f"Total students: {len(df)}")
    print(f"Expected status distribution: {describe_cohort(df)}")
    print(f"Upload '{output_file}' as an Admin via POST /upload_students")
