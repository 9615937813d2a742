import sys

RESET = "\033[0m"
BOLD = "\033[1m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
RED = "\033[91m"


def main():
    print(f"\n{BOLD}{CYAN}EXAM ASSEMBLY - CLI DEMO{RESET}")
    print("-" * 40)
    print("1. Import de thi tu file text vao ngan hang")
    print("2. Rap de theo ma tran Bloom + dap an")
    print("0. Thoat")
    print("-" * 40)
    choice = input("Chon chuc nang (0-2): ").strip()
    if choice == "1":
        from cli.import_questions import main as import_main
        path = input("Duong dan file text: ").strip()
        return import_main([path, "--append"])
    elif choice == "2":
        from cli.build_exam import main as build_main
        return build_main([])
    elif choice == "0":
        print(f"{GREEN}Tam biet!{RESET}")
        return 0
    else:
        print(f"{YELLOW}Lua chon khong hop le, vui long nhap 0-2.{RESET}")
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print(f"\n{RED}Da dung chuong trinh.{RESET}")
