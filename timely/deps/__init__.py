# Marks `timely.deps` as a package so `from timely.deps.session import ...`
# resolves the same way from the app and from the test-suite.
