import kbench


def test():
    # The host reference is a plain triple loop, so keep N modest
    for N in [16, 32, 64, 128]:
        result, record = kbench.run_scenario(kbench.MatrixMultiply(N))
        print(f"N: {N}, max error: {result.max_error}, "
              f"execute: {record['execute'] * 1000:.4f} ms, "
              f"verify: {record['verify'] * 1000:.4f} ms")


if __name__ == "__main__":
    test()
