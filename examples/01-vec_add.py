import kbench
from kbench.report import print_report


def test():
    for N in [1024, 100000, 1000000, 10000000]:
        result, record = kbench.run_scenario(kbench.VectorAdd(N))
        print(f"N: {N}, passed: {result.passed}")
        print_report(record)
        print()


if __name__ == "__main__":
    test()
