# Services package: pure helpers that return updated copies of the data model
