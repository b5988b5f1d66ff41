from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional

from .enums import DeviceCategory


class ChecklistItemDefinition(NamedTuple):
    index: int
    text: str
    notes_placeholder: Optional[str] = None


def _items(*rows) -> List[ChecklistItemDefinition]:
    return [ChecklistItemDefinition(i, *row) for i, row in enumerate(rows, start=1)]


_LAPTOP = _items(
    ("LCD screen free from cracks, scratches, and physical damage",),
    ("Dead pixel test: 0 dead/stuck pixels found",),
    ("Screen brightness and color uniformity acceptable",),
    ("Keyboard: All keys present, functional, no sticking",),
    ("Touchpad responsive, buttons functional, no cracks",),
    ("Lid/cover: Hinges operate smoothly, no excessive wobble",),
    ("Case condition: No major dents, cracks, or warping",),
    ("Battery health check (minimum 70% acceptable)", "___% capacity"),
    ("All USB ports tested and functional", "count: ___"),
    ("HDMI/DisplayPort output tested successfully",),
    ("Audio jack and speakers tested, both channels work",),
    ("Ethernet port tested and functional",),
    ("Charging port secure, charges properly",),
    ("WiFi connects successfully, signal strength good",),
    ("Bluetooth tested and pairs correctly",),
    ("Webcam and microphone tested, quality acceptable",),
    ("BIOS accessible, no password protection",),
    ("CPU, RAM, Storage verified", "CPU: ___, RAM: ___GB, Storage: ___GB"),
    ("Burn-in test completed: no errors/crashes", "___hours"),
    ("Temperature readings normal, fans operate correctly",),
)

# Desktops and workstations are inspected against the same list.
_TOWER = _items(
    ("Case exterior: No major dents, cracks, or damage",),
    ("Front panel buttons functional (power, reset)",),
    ("Side panels fit properly and secure",),
    ("Motherboard visually inspected: No bulging capacitors",),
    ("CPU heatsink properly mounted, thermal paste acceptable",),
    ("RAM modules properly seated", "___GB total detected"),
    ("Storage drives properly installed and secure",),
    ("GPU properly seated in PCIe slot (if present)",),
    ("All power cables properly connected (24-pin, CPU, PCIe)",),
    ("Cable management adequate, no loose cables",),
    ("All case fans present and operational",),
    ("Front and rear USB ports tested", "count: ___"),
    ("Audio ports (front and rear) tested successfully",),
    ("Video outputs tested (HDMI, DP, VGA, DVI)",),
    ("Ethernet port tested and functional",),
    ("POST successful, all components detected in BIOS",),
    ("Storage drives detected, SMART status healthy",),
    ("System boots successfully, stable operation",),
    ("CPU and GPU stress test: temps acceptable", "___hours"),
    ("No unusual noises (grinding, clicking, excessive fan noise)",),
)

_SERVER = _items(
    ("Rack mounting hardware intact and complete",),
    ("Chassis physically sound, no structural damage",),
    ("Drive bay trays/caddies present", "count: ___"),
    ("Front LCD/LED panel functional (if present)",),
    ("CPU configuration verified", "___x CPUs"),
    ("RAM capacity verified", "___GB properly detected"),
    ("RAID controller present and detected",),
    ("Network interface cards detected", "___x ports detected"),
    ("Management controller (iDRAC/iLO/BMC) accessible",),
    ("Remote console/KVM functionality verified",),
    ("All installed drives detected in BIOS/RAID controller",),
    ("SMART status checked: All drives healthy",),
    ("Hot-swap functionality tested on drive bays",),
    ("Network ports tested: Link established, speed verified",),
    ("Redundant power supplies: Both functional (if applicable)",),
    ("Power supply failover tested successfully",),
    ("All cooling fans operational, speeds normal",),
    ("Temperature sensors reading correctly",),
    ("System stress test: no errors logged", "___hours"),
    ("Firmware versions documented, no critical updates needed",),
)

_MONITOR = _items(
    ("Screen free from cracks, scratches, or physical damage",),
    ("Dead pixel test: 0 dead/stuck pixels confirmed",),
    ("Screen uniformity test: No bright spots or dark areas",),
    ("Backlight bleeding: Minimal/acceptable levels",),
    ("Color reproduction accurate across full spectrum",),
    ("Bezel intact, no cracks or missing pieces",),
    ("Stand/base stable, no wobbling",),
    ("HDMI input(s) tested", "count: ___"),
    ("DisplayPort input(s) tested", "count: ___"),
    ("VGA/DVI inputs tested (if present)",),
    ("OSD menu accessible, all buttons functional",),
    ("Brightness and contrast adjustments work properly",),
    ("Stand adjustments functional: Tilt, height, swivel (as applicable)",),
    ("Built-in speakers tested (if present)",),
    ("USB hub ports tested (if present)",),
    ("Native resolution verified", "___x___ at ___Hz"),
    ("No image ghosting or trailing in motion test",),
    ("No flickering at any brightness level",),
    ("Extended burn-in test: no image retention", "___hours"),
    ("Power cable and adapter included (if external)",),
)

_STORAGE = _items(
    ("Physical condition: Casing intact, no damage or corrosion",),
    ("Connector pins straight and undamaged",),
    ("Label intact and readable, model/serial verified",),
    ("No rattling sounds when shaken gently (HDD only)",),
    ("Device detected by system correctly",),
    ("Reported capacity matches specifications",),
    ("Interface speed correct (SATA 3Gbps/6Gbps, PCIe Gen)",),
    ("SMART status: Overall health PASSED",),
    ("SMART: Reallocated sectors count", "count: ___"),
    ("SMART: Current pending sectors", "count: ___"),
    ("SMART: Uncorrectable errors", "count: ___"),
    ("Power-on hours and power cycle count documented", "POH: ___, Cycles: ___"),
    ("Sequential read speed meets specification", "___MB/s"),
    ("Sequential write speed meets specification", "___MB/s"),
    ("Surface scan completed: 0 bad sectors found",),
    ("Temperature during operation acceptable", "___°C"),
    ("Data sanitization completed: Secure erase/wipe verified",),
    ("No recoverable data remaining on device",),
    ("Extended stress test: no errors", "___hours"),
    ("Mounting hardware/adapter included (if applicable)",),
)

_NETWORKING_CARD = _items(
    ("PCB condition: Clean, no cracks, burns, or damage",),
    ("No bulging or leaking capacitors",),
    ("PCIe connector edge clean and undamaged",),
    ("Mounting bracket secure and straight",),
    ("All port connectors physically intact",),
    ("Heatsink properly attached (if present)",),
    ("Card properly seated in PCIe slot",),
    ("Detected correctly by system BIOS and OS",),
    ("Driver installation successful, no errors",),
    ("MAC address(es) readable and documented",),
    ("All ports tested individually",),
    ("Link established at correct speed", "___Gbps"),
    ("Auto-negotiation and duplex mode correct",),
    ("LED indicators (link, activity) functional",),
    ("Throughput test: achieved with 0% packet loss", "___Gbps"),
    ("Latency acceptable, no connection drops",),
    ("Advanced features tested (if applicable): VLAN, offload, SR-IOV",),
    ("Stress test: stable at full load", "___hours"),
    ("Temperature acceptable under load",),
    ("Low-profile bracket included (if applicable)",),
)

CHECKLIST_DEFINITIONS: Dict[DeviceCategory, List[ChecklistItemDefinition]] = {
    DeviceCategory.LAPTOP: _LAPTOP,
    DeviceCategory.DESKTOP: _TOWER,
    DeviceCategory.WORKSTATION: _TOWER,
    DeviceCategory.SERVER: _SERVER,
    DeviceCategory.MONITOR: _MONITOR,
    DeviceCategory.STORAGE: _STORAGE,
    DeviceCategory.NETWORKING_CARD: _NETWORKING_CARD,
}


# PUBLIC_INTERFACE
def get_checklist_for_category(category: DeviceCategory | str) -> List[ChecklistItemDefinition]:
    """Inspection checklist for a device category, ordered by index."""
    return list(CHECKLIST_DEFINITIONS.get(DeviceCategory(category), []))


def get_checklist_item_count(category: DeviceCategory | str) -> int:
    return len(CHECKLIST_DEFINITIONS.get(DeviceCategory(category), []))
